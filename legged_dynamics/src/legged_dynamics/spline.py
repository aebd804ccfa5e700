"""
spline.py
Splines built from node optimization variables

A spline is a sequence of cubic Hermite polynomials glued together at
the nodes. It holds no values of its own: every query reads the current
node values (and phase durations) from the linked variable sets, so the
same spline object stays valid while the solver changes the variables.
"""

import numpy as np

from .cartesian_dimensions import Dx
from .polynomial import EPS_TIME, CubicHermitePolynomial, SplineDomainError


class NodeSpline:
    """
    Spline over node variables with fixed polynomial durations

    Args:
        node_variables: NodesVariables the spline is built from
        polynomial_durations: duration of every polynomial
    """

    def __init__(self, node_variables, polynomial_durations=None):
        self.node_variables = node_variables
        if polynomial_durations is not None:
            polynomial_durations = np.asarray(polynomial_durations, dtype=float)
            if polynomial_durations.size != node_variables.get_polynomial_count():
                raise ValueError(
                    f"{node_variables.name}: {node_variables.get_polynomial_count()} "
                    f"polynomials but {polynomial_durations.size} durations"
                )
        self._polynomial_durations = polynomial_durations

    def get_polynomial_durations(self):
        return self._polynomial_durations

    def get_total_time(self):
        return float(np.sum(self.get_polynomial_durations()))

    def get_segment_id(self, t, durations=None):
        """
        Index of the polynomial active at global time `t` and the local time

        Times exactly on a junction belong to the earlier polynomial.
        """
        if durations is None:
            durations = self.get_polynomial_durations()
        if np.any(durations <= 0.0):
            raise SplineDomainError(
                f"{self.node_variables.name}: polynomial durations must be positive, got {durations}"
            )
        ends = np.cumsum(durations)

        if t < -EPS_TIME or t > ends[-1] + EPS_TIME:
            raise SplineDomainError(
                f"{self.node_variables.name}: time {t} outside of spline domain [0, {ends[-1]}]"
            )

        poly_id = min(int(np.searchsorted(ends, t, side="left")), ends.size - 1)
        t_local = t - (ends[poly_id] - durations[poly_id])
        t_local = min(max(t_local, 0.0), durations[poly_id])
        return poly_id, t_local

    def _make_polynomial(self, poly_id, durations):
        nodes = self.node_variables.get_nodes()
        start, end = nodes[poly_id], nodes[poly_id + 1]
        return CubicHermitePolynomial(start[Dx.POS], start[Dx.VEL],
                                      end[Dx.POS], end[Dx.VEL],
                                      durations[poly_id])

    def get_point(self, t):
        """State (p, v, a) of the spline at global time `t`"""
        durations = self.get_polynomial_durations()
        poly_id, t_local = self.get_segment_id(t, durations)
        return self._make_polynomial(poly_id, durations).get_point(t_local)

    def get_jacobian_wrt_nodes(self, t, dxdt):
        """
        Jacobian of value/velocity/acceleration at `t` w.r.t. the node variables

        Only the columns of the two nodes framing the active polynomial
        can be nonzero.

        Returns:
            ndarray of shape (n_dim, n_node_vars)
        """
        durations = self.get_polynomial_durations()
        poly_id, t_local = self.get_segment_id(t, durations)
        poly = self._make_polynomial(poly_id, durations)

        nv = self.node_variables
        jac = np.zeros((nv.n_dim, nv.get_rows()))
        for node_deriv in (Dx.POS, Dx.VEL):
            d_start = poly.get_derivative_wrt_start_node(dxdt, node_deriv, t_local)
            d_end = poly.get_derivative_wrt_end_node(dxdt, node_deriv, t_local)
            jac += d_start * nv.get_node_jacobian(poly_id, node_deriv)
            jac += d_end * nv.get_node_jacobian(poly_id + 1, node_deriv)
        return jac

    def get_jacobian_of_pos_wrt_durations(self, t):
        """Polynomial durations are fixed, so there are no duration variables"""
        return np.zeros((self.node_variables.n_dim, 0))


class PhaseSpline(NodeSpline):
    """
    Spline whose polynomial durations follow the phase durations of an endeffector

    Each phase of duration T that is split into n polynomials gives every
    one of them the duration T/n.

    Args:
        node_variables: NodesVariablesPhaseBased the spline is built from
        phase_durations: PhaseDurations variables of the same endeffector
    """

    def __init__(self, node_variables, phase_durations):
        if node_variables.phase_count != phase_durations.get_phase_count():
            raise ValueError(
                f"{node_variables.name} has {node_variables.phase_count} phases, "
                f"{phase_durations.name} has {phase_durations.get_phase_count()}"
            )
        super().__init__(node_variables)
        self.phase_durations = phase_durations

    def get_polynomial_durations(self):
        phase_durations = self.phase_durations.get_phase_durations()
        return np.array([phase_durations[phase] / n_polys
                         for phase, _, n_polys, _ in self.node_variables.polynomial_info])

    def get_jacobian_of_pos_wrt_durations(self, t):
        """
        Jacobian of the position at fixed global time `t` w.r.t. the duration variables

        Moving a junction shifts the local time inside the active polynomial
        (through its start time) and stretches the polynomial itself
        (through its duration):

            dp/dx = -v * d(t_start)/dx + dp/dT * d(T_poly)/dx

        Returns:
            ndarray of shape (n_dim, n_duration_vars)
        """
        durations = self.get_polynomial_durations()
        poly_id, t_local = self.get_segment_id(t, durations)
        poly = self._make_polynomial(poly_id, durations)

        phase, poly_in_phase, n_polys, _ = self.node_variables.polynomial_info[poly_id]
        jac_phases = self.phase_durations.get_jacobian_of_durations()

        dstart = jac_phases[:phase].sum(axis=0) + poly_in_phase / n_polys * jac_phases[phase]
        dduration = jac_phases[phase] / n_polys

        vel = poly.get_point(t_local).v
        dpos_dT = poly.get_derivative_of_pos_wrt_duration(t_local)
        return -np.outer(vel, dstart) + np.outer(dpos_dT, dduration)
