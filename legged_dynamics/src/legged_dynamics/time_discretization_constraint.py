"""
time_discretization_constraint.py
Constraints enforced at discrete instants of a continuous trajectory

ConstraintSet is the contract the NLP solver talks to: values, bounds
and one Jacobian block per variable set. TimeDiscretizationConstraint
implements that contract for constraints that are evaluated at a fixed
list of times and leaves the per-instant work to its subclasses.
"""

import logging
import math
from abc import ABC, abstractmethod

import numpy as np

from .bounds import NO_BOUND


logger = logging.getLogger(__name__)


class ConstraintSet(ABC):
    """
    Block of constraint rows seen by the NLP solver

    Args:
        n_rows: number of constraints
        name: constraint set name
    """

    def __init__(self, n_rows, name):
        self.name = name
        self._rows = n_rows
        self._variables = None

    def get_rows(self):
        return self._rows

    def set_rows(self, n_rows):
        self._rows = n_rows

    def link_with_variables(self, variables):
        """Give access to the OptimizationVariables to build the full Jacobian"""
        self._variables = variables

    def get_variables(self):
        if self._variables is None:
            raise RuntimeError(f"Constraint '{self.name}' is not linked with any variables")
        return self._variables

    @abstractmethod
    def get_values(self):
        """Constraint values g(x), shape (rows,)"""

    @abstractmethod
    def get_bounds(self):
        """List of Bounds, one per row"""

    @abstractmethod
    def fill_jacobian_block(self, var_set, jac):
        """
        Write dg/dx for the variables of `var_set` into `jac` (rows, n_vars_of_set)

        Entries that do not depend on `var_set` are left untouched.
        """

    def get_jacobian_block(self, var_set, n_cols=None):
        """
        Fresh Jacobian block w.r.t. the variable set `var_set`

        Unknown names give an all-zero block of the requested width.
        """
        if n_cols is None:
            variables = self.get_variables()
            n_cols = variables.get_component(var_set).get_rows() if var_set in variables else 0

        jac = np.zeros((self.get_rows(), n_cols))
        self.fill_jacobian_block(var_set, jac)
        return jac

    def get_jacobian(self):
        """Jacobian w.r.t. the stacked vector of all linked variable sets"""
        variables = self.get_variables()
        jac = np.zeros((self.get_rows(), variables.get_rows()))
        for variable_set in variables.get_components():
            # a column slice of jac is a view, so the block is written in place
            self.fill_jacobian_block(variable_set.name,
                                     jac[:, variables.get_column_slice(variable_set.name)])
        return jac


def get_evaluation_times(t_total, dt):
    """
    Instants 0, dt, 2*dt, ... up to `t_total`, always ending exactly at `t_total`
    """
    if dt <= 0.0:
        raise ValueError(f"Discretization step must be positive, got {dt}")

    times = [i * dt for i in range(int(math.floor(t_total / dt + 1e-9)) + 1)]
    if t_total - times[-1] > 1e-9:
        times.append(t_total)
    else:
        times[-1] = t_total
    return times


class TimeDiscretizationConstraint(ConstraintSet):
    """
    Constraint evaluated at a fixed list of instants

    Iterates all instants for values, bounds and Jacobians and delegates
    every single instant to the update_*_at_instance hooks. Nothing is
    cached, each call recomputes from the current variables.

    Args:
        evaluation_times: instants at which the constraint is enforced
        name: constraint set name
    """

    def __init__(self, evaluation_times, name):
        times = tuple(float(t) for t in evaluation_times)
        if not times:
            raise ValueError(f"{name}: at least one evaluation time is required")
        if any(t1 < t0 for t0, t1 in zip(times, times[1:])):
            raise ValueError(f"{name}: evaluation times must be sorted")

        super().__init__(0, name)
        self.evaluation_times = times

    @classmethod
    def from_total_time(cls, t_total, dt, *args, **kwargs):
        """Constraint evaluated every `dt` seconds over [0, t_total]"""
        return cls(*args, evaluation_times=get_evaluation_times(t_total, dt), **kwargs)

    def get_number_of_nodes(self):
        return len(self.evaluation_times)

    def get_values(self):
        g = np.zeros(self.get_rows())
        for k, t in enumerate(self.evaluation_times):
            self.update_constraint_at_instance(t, k, g)
        return g

    def get_bounds(self):
        bounds = [NO_BOUND] * self.get_rows()
        for k, t in enumerate(self.evaluation_times):
            self.update_bounds_at_instance(t, k, bounds)
        return bounds

    def fill_jacobian_block(self, var_set, jac):
        if jac.shape[0] != self.get_rows():
            raise ValueError(
                f"{self.name}: Jacobian block has {jac.shape[0]} rows, expected {self.get_rows()}"
            )
        for k, t in enumerate(self.evaluation_times):
            self.update_jacobian_at_instance(t, k, var_set, jac)

    @abstractmethod
    def update_constraint_at_instance(self, t, k, g):
        """Write the constraint values of instant `k` (time `t`) into `g`"""

    @abstractmethod
    def update_bounds_at_instance(self, t, k, bounds):
        """Write the bounds of instant `k` into the list `bounds`"""

    @abstractmethod
    def update_jacobian_at_instance(self, t, k, var_set, jac):
        """Write the rows of instant `k` of the Jacobian block of `var_set`"""
