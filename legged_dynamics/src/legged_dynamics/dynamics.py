"""
dynamics.py
Rigid body dynamics models for legged robots

A dynamic model maps the current center of mass position, angular
velocity and the endeffector forces/positions to the base acceleration
the equations of motion demand. Besides the acceleration every model
provides its Jacobians, already composed with the Jacobian of the
respective input w.r.t. some optimization variables, so that no dense
intermediate partials are needed by the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from .cartesian_dimensions import ANGULAR, K3D, K6D, LINEAR


GRAVITY = 9.80665  # [m/s^2]


def skew(v):
    """Matrix [v]x such that [v]x @ u == np.cross(v, u)"""
    return np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0],
    ])


def _frozen_vector(v):
    v = np.array(v, dtype=float).ravel()
    if v.size != K3D:
        raise ValueError(f"Expected a 3D vector, got {v.size} values")
    v.setflags(write=False)
    return v


@dataclass(frozen=True)
class ModelState:
    """
    Snapshot of the model inputs at a single instant

    Built fresh for every evaluation and never stored between calls.
    """
    com_pos: np.ndarray
    omega: np.ndarray
    ee_force: tuple
    ee_pos: tuple


class DynamicModel(ABC):
    """
    Interface of a dynamic model used by the dynamic constraint

    The linear part of the returned acceleration does not include gravity,
    the constraint shifts its bound by g instead.

    Args:
        mass: total mass (kg)
        ee_count: number of endeffectors
        gravity: gravity magnitude along world -z (m/s^2)
    """

    def __init__(self, mass, ee_count, gravity=GRAVITY):
        self._mass = float(mass)
        self._ee_count = int(ee_count)
        self._gravity = float(gravity)

    @property
    def m(self):
        return self._mass

    @property
    def g(self):
        return self._gravity

    @property
    def ee_count(self):
        return self._ee_count

    def make_state(self, com_pos, omega, ee_force, ee_pos):
        """Validate the inputs of one instant and bundle them into a ModelState"""
        if len(ee_force) != self.ee_count or len(ee_pos) != self.ee_count:
            raise ValueError(
                f"Model has {self.ee_count} endeffectors, got {len(ee_force)} forces "
                f"and {len(ee_pos)} positions"
            )
        return ModelState(
            com_pos=_frozen_vector(com_pos),
            omega=_frozen_vector(omega),
            ee_force=tuple(_frozen_vector(f) for f in ee_force),
            ee_pos=tuple(_frozen_vector(p) for p in ee_pos),
        )

    @abstractmethod
    def get_base_acceleration_in_world(self, state):
        """6D acceleration [angular; linear] required by the equations of motion"""

    @abstractmethod
    def get_jacobian_of_acc_wrt_base_lin(self, state, jac_base_lin_pos):
        """
        Args:
            jac_base_lin_pos: (3, n) Jacobian of the CoM position

        Returns:
            (6, n) Jacobian of the base acceleration
        """

    @abstractmethod
    def get_jacobian_of_acc_wrt_base_ang(self, state, jac_ang_vel):
        """Same for a (3, n) Jacobian of the angular velocity in world frame"""

    @abstractmethod
    def get_jacobian_of_acc_wrt_force(self, state, jac_force, ee):
        """Same for a (3, n) Jacobian of the force of endeffector `ee`"""

    @abstractmethod
    def get_jacobian_of_acc_wrt_ee_pos(self, state, jac_ee_pos, ee):
        """Same for a (3, n) Jacobian of the position of endeffector `ee`"""


def _check_input_jacobian(jac):
    jac = np.asarray(jac, dtype=float)
    if jac.ndim != 2 or jac.shape[0] != K3D:
        raise ValueError(f"Input Jacobian must have 3 rows, got shape {jac.shape}")
    return jac


class SingleRigidBodyDynamics(DynamicModel):
    """
    Robot as one rigid body with massless legs (Newton-Euler equations)

    With r_i = c - p_i the lever of endeffector i w.r.t. the CoM:

        linear:   a     = (sum_i f_i) / m
        angular:  omega' = I^-1 (sum_i f_i x r_i - omega x I omega)

    The inertia is treated as constant in world frame.

    Args:
        mass: total mass (kg)
        inertia: (3, 3) inertia about the CoM, or its diagonal
        ee_count: number of endeffectors
        gravity: gravity magnitude (m/s^2)
    """

    def __init__(self, mass, inertia, ee_count, gravity=GRAVITY):
        super().__init__(mass, ee_count, gravity)
        inertia = np.asarray(inertia, dtype=float)
        if inertia.shape == (3,):
            inertia = np.diag(inertia)
        if inertia.shape != (3, 3):
            raise ValueError(f"Inertia must be 3x3, got shape {inertia.shape}")
        self.inertia = inertia
        self.inertia_inv = np.linalg.inv(inertia)

    @classmethod
    def from_robot(cls, robot):
        """Model with the constants of a RobotModel"""
        return cls(robot.mass, robot.inertia, robot.n_legs, robot.gravity)

    def get_base_acceleration_in_world(self, state):
        f_sum = np.zeros(K3D)
        tau_sum = np.zeros(K3D)
        for f, p in zip(state.ee_force, state.ee_pos):
            tau_sum += np.cross(f, state.com_pos - p)
            f_sum += f

        omega = state.omega
        acc = np.zeros(K6D)
        acc[ANGULAR] = self.inertia_inv @ (tau_sum - np.cross(omega, self.inertia @ omega))
        acc[LINEAR] = f_sum / self.m
        return acc

    def get_jacobian_of_acc_wrt_base_lin(self, state, jac_base_lin_pos):
        jac_base_lin_pos = _check_input_jacobian(jac_base_lin_pos)

        # d(f x (c - p))/dc = [f]x
        dtau_dcom = sum((skew(f) for f in state.ee_force), np.zeros((K3D, K3D)))

        jac = np.zeros((K6D, jac_base_lin_pos.shape[1]))
        jac[ANGULAR] = self.inertia_inv @ dtau_dcom @ jac_base_lin_pos
        return jac

    def get_jacobian_of_acc_wrt_base_ang(self, state, jac_ang_vel):
        jac_ang_vel = _check_input_jacobian(jac_ang_vel)

        # d(w x Iw)/dw = [w]x I - [Iw]x
        omega = state.omega
        dgyro_domega = skew(omega) @ self.inertia - skew(self.inertia @ omega)

        jac = np.zeros((K6D, jac_ang_vel.shape[1]))
        jac[ANGULAR] = -self.inertia_inv @ dgyro_domega @ jac_ang_vel
        return jac

    def get_jacobian_of_acc_wrt_force(self, state, jac_force, ee):
        jac_force = _check_input_jacobian(jac_force)

        # d(f x r)/df = -[r]x
        r = state.com_pos - state.ee_pos[ee]

        jac = np.zeros((K6D, jac_force.shape[1]))
        jac[ANGULAR] = -self.inertia_inv @ skew(r) @ jac_force
        jac[LINEAR] = jac_force / self.m
        return jac

    def get_jacobian_of_acc_wrt_ee_pos(self, state, jac_ee_pos, ee):
        jac_ee_pos = _check_input_jacobian(jac_ee_pos)

        # d(f x (c - p))/dp = -[f]x
        f = state.ee_force[ee]

        jac = np.zeros((K6D, jac_ee_pos.shape[1]))
        jac[ANGULAR] = -self.inertia_inv @ skew(f) @ jac_ee_pos
        return jac
