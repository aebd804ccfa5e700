"""
euler_converter.py
Base orientation from a spline of Euler angles

The base orientation is parameterized by Euler angles u = [roll, pitch, yaw]
with the rotation from base to world frame

    w_R_b = Rz(yaw) * Ry(pitch) * Rx(roll)

The angular velocity in world frame is not the derivative of the spline
but the kinematic map

    omega  = M(u) * u'
    omega' = d/dt(M(u) * u') = dM/du(u') * u' + M(u) * u''

These expressions and their partial derivatives are built once with
CasADi and evaluated numerically at every query.
"""

import casadi as ca
import numpy as np

from .cartesian_dimensions import Dx


def _build_kinematic_functions():
    u = ca.SX.sym("u", 3)
    ud = ca.SX.sym("ud", 3)
    udd = ca.SX.sym("udd", 3)

    x, y, z = u[0], u[1], u[2]

    # maps euler rates to angular velocity in world frame
    M = ca.SX.zeros(3, 3)
    M[0, 0] = ca.cos(y) * ca.cos(z)
    M[0, 1] = -ca.sin(z)
    M[1, 0] = ca.cos(y) * ca.sin(z)
    M[1, 1] = ca.cos(z)
    M[2, 0] = -ca.sin(y)
    M[2, 2] = 1.0

    omega = ca.mtimes(M, ud)
    omega_dot = ca.jtimes(omega, u, ud) + ca.mtimes(M, udd)

    Rx = ca.SX.zeros(3, 3)
    Rx[0, 0] = 1.0
    Rx[1, 1] = ca.cos(x)
    Rx[1, 2] = -ca.sin(x)
    Rx[2, 1] = ca.sin(x)
    Rx[2, 2] = ca.cos(x)

    Ry = ca.SX.zeros(3, 3)
    Ry[0, 0] = ca.cos(y)
    Ry[0, 2] = ca.sin(y)
    Ry[1, 1] = 1.0
    Ry[2, 0] = -ca.sin(y)
    Ry[2, 2] = ca.cos(y)

    Rz = ca.SX.zeros(3, 3)
    Rz[0, 0] = ca.cos(z)
    Rz[0, 1] = -ca.sin(z)
    Rz[1, 0] = ca.sin(z)
    Rz[1, 1] = ca.cos(z)
    Rz[2, 2] = 1.0

    angular_velocity = ca.Function(
        "angular_velocity", [u, ud],
        [omega, ca.jacobian(omega, u), ca.jacobian(omega, ud)],
    )
    angular_acceleration = ca.Function(
        "angular_acceleration", [u, ud, udd],
        [omega_dot, ca.jacobian(omega_dot, u), ca.jacobian(omega_dot, ud),
         ca.jacobian(omega_dot, udd)],
    )
    rotation = ca.Function("rotation", [u], [ca.mtimes([Rz, Ry, Rx])])
    rate_matrix = ca.Function("rate_matrix", [u], [M])

    return angular_velocity, angular_acceleration, rotation, rate_matrix


_ANGULAR_VELOCITY, _ANGULAR_ACCELERATION, _ROTATION, _RATE_MATRIX = _build_kinematic_functions()


def _vector(dm):
    return dm.full().ravel()


def get_rate_matrix(euler_angles):
    """Matrix M(u) mapping euler rates to angular velocity in world frame"""
    return _RATE_MATRIX(euler_angles).full()


def get_rotation_matrix(euler_angles):
    """Rotation from base to world frame"""
    return _ROTATION(euler_angles).full()


class EulerConverter:
    """
    Angular quantities in world frame of a spline of Euler angles

    Args:
        euler_spline: 3D NodeSpline of [roll, pitch, yaw]
    """

    def __init__(self, euler_spline):
        if euler_spline.node_variables.n_dim != 3:
            raise ValueError("Euler angle spline must be three dimensional")
        self.euler = euler_spline

    def get_angular_velocity_in_world(self, t):
        s = self.euler.get_point(t)
        omega, _, _ = _ANGULAR_VELOCITY(s.p, s.v)
        return _vector(omega)

    def get_angular_acceleration_in_world(self, t):
        s = self.euler.get_point(t)
        omega_dot, _, _, _ = _ANGULAR_ACCELERATION(s.p, s.v, s.a)
        return _vector(omega_dot)

    def get_rotation_matrix_base_to_world(self, t):
        return get_rotation_matrix(self.euler.get_point(t).p)

    def get_deriv_of_ang_vel_wrt_euler_nodes(self, t):
        """
        Jacobian of the angular velocity in world frame w.r.t. the euler node variables

        Returns:
            ndarray of shape (3, n_node_vars)
        """
        s = self.euler.get_point(t)
        _, domega_du, domega_dud = _ANGULAR_VELOCITY(s.p, s.v)

        jac_u = self.euler.get_jacobian_wrt_nodes(t, Dx.POS)
        jac_ud = self.euler.get_jacobian_wrt_nodes(t, Dx.VEL)
        return domega_du.full() @ jac_u + domega_dud.full() @ jac_ud

    def get_deriv_of_ang_acc_wrt_euler_nodes(self, t):
        """
        Jacobian of the angular acceleration in world frame w.r.t. the euler node variables

        Returns:
            ndarray of shape (3, n_node_vars)
        """
        s = self.euler.get_point(t)
        _, d_du, d_dud, d_dudd = _ANGULAR_ACCELERATION(s.p, s.v, s.a)

        jac = d_du.full() @ self.euler.get_jacobian_wrt_nodes(t, Dx.POS)
        jac += d_dud.full() @ self.euler.get_jacobian_wrt_nodes(t, Dx.VEL)
        jac += d_dudd.full() @ self.euler.get_jacobian_wrt_nodes(t, Dx.ACC)
        return jac
