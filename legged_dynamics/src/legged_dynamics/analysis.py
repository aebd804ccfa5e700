"""
analysis.py
Derivative and Feasibility Verification

Compares the analytic Jacobians of a constraint against central
differences of its values and measures how far the constraint values
are from their bounds.
"""

import logging
from dataclasses import dataclass

import numpy as np


logger = logging.getLogger(__name__)


def numerical_jacobian(constraint, variables, var_set, eps=1e-6):
    """
    Central difference Jacobian of constraint.get_values() w.r.t. one variable set

    The variable set is restored to its original values afterwards.

    Args:
        constraint: ConstraintSet to differentiate
        variables: OptimizationVariables holding `var_set`
        var_set: name of the variable set
        eps: perturbation of each variable

    Returns:
        (rows, n_vars_of_set) array
    """
    component = variables.get_component(var_set)
    x0 = component.get_values()
    jac = np.zeros((constraint.get_rows(), x0.size))

    try:
        for i in range(x0.size):
            x = x0.copy()
            x[i] = x0[i] + eps
            component.set_variables(x)
            g_plus = constraint.get_values()

            x[i] = x0[i] - eps
            component.set_variables(x)
            g_minus = constraint.get_values()

            jac[:, i] = (g_plus - g_minus) / (2.0 * eps)
    finally:
        component.set_variables(x0)

    return jac


def constraint_violation(constraint):
    """Distance of every constraint value to its bound interval"""
    values = constraint.get_values()
    return np.array([b.violation(v) for v, b in zip(values, constraint.get_bounds())])


@dataclass
class DerivativeCheckResult:
    name: str
    max_abs_error: float
    max_rel_error: float
    passed: bool


class DerivativeChecker:
    """
    Verify the analytic Jacobian blocks of a constraint

    Args:
        constraint: ConstraintSet linked with its variables
        eps: finite difference step
        rtol, atol: tolerances of the comparison
    """

    def __init__(self, constraint, eps=1e-6, rtol=1e-5, atol=1e-6):
        self.constraint = constraint
        self.variables = constraint.get_variables()
        self.eps = eps
        self.rtol = rtol
        self.atol = atol

    def check_variable_set(self, var_set):
        analytic = self.constraint.get_jacobian_block(var_set)
        numeric = numerical_jacobian(self.constraint, self.variables, var_set, self.eps)

        error = np.abs(analytic - numeric)
        max_abs = float(error.max()) if error.size else 0.0
        max_rel = float((error / np.maximum(np.abs(numeric), 1.0)).max()) if error.size else 0.0
        passed = bool(np.allclose(analytic, numeric, rtol=self.rtol, atol=self.atol))

        if passed:
            logger.info("%s w.r.t. %s: ok (max abs error %.2e)",
                        self.constraint.name, var_set, max_abs)
        else:
            logger.warning("%s w.r.t. %s: Jacobian mismatch (max abs error %.2e, max rel error %.2e)",
                           self.constraint.name, var_set, max_abs, max_rel)

        return DerivativeCheckResult(var_set, max_abs, max_rel, passed)

    def check_all(self):
        """Check the block of every linked variable set"""
        return [self.check_variable_set(s.name) for s in self.variables.get_components()]
