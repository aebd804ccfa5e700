"""
polynomial.py
Cubic Hermite polynomial segments

A segment is fully defined by the position and velocity at its start
and end node and by its duration T. With local time t in [0, T]:

    p(t) = a0 + a1*t + a2*t^2 + a3*t^3

    a0 = p0
    a1 = v0
    a2 = -(3*(p0 - p1) + T*(2*v0 + v1)) / T^2
    a3 =  (2*(p0 - p1) + T*(v0 + v1)) / T^3
"""

from dataclasses import dataclass

import numpy as np

from .cartesian_dimensions import Dx


EPS_TIME = 1e-10


class SplineDomainError(ValueError):
    """Raised when a spline is evaluated outside of its time domain"""


@dataclass(frozen=True)
class State:
    """Position, velocity and acceleration of a spline at one instant"""
    p: np.ndarray
    v: np.ndarray
    a: np.ndarray

    def get_by_index(self, dxdt):
        return (self.p, self.v, self.a)[dxdt]


def _time_basis(dxdt, t):
    """Derivative of [1, t, t^2, t^3] of order `dxdt`"""
    if dxdt == Dx.POS:
        return np.array([1.0, t, t**2, t**3])
    if dxdt == Dx.VEL:
        return np.array([0.0, 1.0, 2.0*t, 3.0*t**2])
    if dxdt == Dx.ACC:
        return np.array([0.0, 0.0, 2.0, 6.0*t])
    raise ValueError(f"Unknown derivative order {dxdt}")


class CubicHermitePolynomial:
    """
    Third order polynomial between two nodes

    Args:
        start_pos, start_vel: node values at local time 0
        end_pos, end_vel: node values at local time T
        duration: segment duration T (> 0)
    """

    def __init__(self, start_pos, start_vel, end_pos, end_vel, duration):
        if duration <= 0.0:
            raise ValueError(f"Polynomial duration must be positive, got {duration}")

        self.p0 = np.asarray(start_pos, dtype=float)
        self.v0 = np.asarray(start_vel, dtype=float)
        self.p1 = np.asarray(end_pos, dtype=float)
        self.v1 = np.asarray(end_vel, dtype=float)
        self.T = float(duration)

        T, T2, T3 = self.T, self.T**2, self.T**3
        dp = self.p0 - self.p1

        # rows: a0..a3, columns: dimensions
        self.coeffs = np.vstack([
            self.p0,
            self.v0,
            -(3.0*dp + T*(2.0*self.v0 + self.v1)) / T2,
            (2.0*dp + T*(self.v0 + self.v1)) / T3,
        ])

    @property
    def n_dim(self):
        return self.p0.size

    def _check_local_time(self, t_local):
        if t_local < -EPS_TIME or t_local > self.T + EPS_TIME:
            raise SplineDomainError(
                f"Local time {t_local} outside of polynomial duration [0, {self.T}]"
            )

    def get_point(self, t_local):
        """Value, velocity and acceleration at local time `t_local`"""
        self._check_local_time(t_local)
        return State(
            p=_time_basis(Dx.POS, t_local) @ self.coeffs,
            v=_time_basis(Dx.VEL, t_local) @ self.coeffs,
            a=_time_basis(Dx.ACC, t_local) @ self.coeffs,
        )

    def _dcoeffs_wrt_start(self, node_deriv):
        T = self.T
        if node_deriv == Dx.POS:
            return np.array([1.0, 0.0, -3.0/T**2, 2.0/T**3])
        if node_deriv == Dx.VEL:
            return np.array([0.0, 1.0, -2.0/T, 1.0/T**2])
        raise ValueError("Nodes only hold position and velocity")

    def _dcoeffs_wrt_end(self, node_deriv):
        T = self.T
        if node_deriv == Dx.POS:
            return np.array([0.0, 0.0, 3.0/T**2, -2.0/T**3])
        if node_deriv == Dx.VEL:
            return np.array([0.0, 0.0, -1.0/T, 1.0/T**2])
        raise ValueError("Nodes only hold position and velocity")

    def get_derivative_wrt_start_node(self, dxdt, node_deriv, t_local):
        """
        Sensitivity of value/velocity/acceleration w.r.t. one start node value

        The polynomial is decoupled per dimension, so the returned scalar
        applies to every dimension.
        """
        self._check_local_time(t_local)
        return float(_time_basis(dxdt, t_local) @ self._dcoeffs_wrt_start(node_deriv))

    def get_derivative_wrt_end_node(self, dxdt, node_deriv, t_local):
        """Same as get_derivative_wrt_start_node for the end node"""
        self._check_local_time(t_local)
        return float(_time_basis(dxdt, t_local) @ self._dcoeffs_wrt_end(node_deriv))

    def get_derivative_of_pos_wrt_duration(self, t_local):
        """
        Sensitivity of the position at fixed local time w.r.t. the duration T

        Returns:
            ndarray of shape (n_dim,)
        """
        self._check_local_time(t_local)
        T = self.T
        dp = self.p0 - self.p1

        da2 = 6.0*dp/T**3 + (2.0*self.v0 + self.v1)/T**2
        da3 = -6.0*dp/T**4 - 2.0*(self.v0 + self.v1)/T**3

        return da2*t_local**2 + da3*t_local**3
