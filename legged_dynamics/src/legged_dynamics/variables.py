"""
variables.py
Optimization variables of the trajectory optimization problem

Each variable set is a named, ordered block of scalars. The constraint
code only reads the current values and the column ranges; the solver
(or a test) owns the vector and writes it through set_variables().

Spline node values are expressed through a constant linear map of the
optimization variables:

    node_values = M @ x + c

where M is a 0/1 selection matrix. Several node values can be driven
by the same variable (e.g. a foot that does not move during stance),
and node values without a variable stay at their fixed value c.
"""

import logging
from abc import ABC, abstractmethod

import numpy as np

from .bounds import NO_BOUND, Bounds
from .cartesian_dimensions import Dx
from .variable_names import ee_force_nodes, ee_motion_nodes, ee_schedule


logger = logging.getLogger(__name__)


class VariableSet:
    """
    Named block of optimization variables

    Args:
        n_vars: number of scalar variables in this set
        name: unique name used to query Jacobian blocks
    """

    def __init__(self, n_vars, name):
        self.name = name
        self._x = np.zeros(n_vars)

    def get_rows(self):
        return self._x.size

    def get_values(self):
        return self._x.copy()

    def set_variables(self, x):
        x = np.asarray(x, dtype=float).ravel()
        if x.size != self._x.size:
            raise ValueError(
                f"Variable set '{self.name}' has {self._x.size} variables, got {x.size}"
            )
        self._x = x.copy()

    def get_bounds(self):
        return [NO_BOUND] * self.get_rows()

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r}, n_vars={self.get_rows()})"


class NodesVariables(VariableSet, ABC):
    """
    Position and velocity of every node of a Hermite spline

    Node value layout (flattened): ((node * 2) + deriv) * n_dim + dim,
    with deriv in {Dx.POS, Dx.VEL}.
    """

    def __init__(self, n_nodes, n_dim, name):
        self.n_nodes = n_nodes
        self.n_dim = n_dim
        index_map = self._build_index_map()
        super().__init__(len(index_map), name)

        n_values = n_nodes * 2 * n_dim
        self._selection = np.zeros((n_values, len(index_map)))
        for idx, node_values in enumerate(index_map):
            for node, deriv, dim in node_values:
                self._selection[self._value_index(node, deriv, dim), idx] = 1.0

        self._fixed = np.zeros(n_values)

    @abstractmethod
    def _build_index_map(self):
        """
        List with one entry per variable, each holding the
        (node, deriv, dim) triplets that variable drives.
        """

    def _value_index(self, node, deriv, dim):
        return (node * 2 + deriv) * self.n_dim + dim

    def get_polynomial_count(self):
        return self.n_nodes - 1

    def get_nodes(self):
        """Current node values, shape (n_nodes, 2, n_dim)"""
        values = self._selection @ self._x + self._fixed
        return values.reshape(self.n_nodes, 2, self.n_dim)

    def get_node_jacobian(self, node, deriv):
        """d(node value)/d(variables), shape (n_dim, n_vars)"""
        start = self._value_index(node, deriv, 0)
        return self._selection[start:start + self.n_dim, :]

    def set_by_linear_interpolation(self, initial_val, final_val, t_total):
        """
        Initialize node positions on a straight line between two values
        and velocities with the average velocity.
        """
        initial_val = np.asarray(initial_val, dtype=float)
        final_val = np.asarray(final_val, dtype=float)
        dp = final_val - initial_val
        average_velocity = dp / t_total

        target = np.zeros((self.n_nodes, 2, self.n_dim))
        for node in range(self.n_nodes):
            target[node, Dx.POS] = initial_val + node / (self.n_nodes - 1) * dp
            target[node, Dx.VEL] = average_velocity

        self.set_from_node_values(target)

    def set_from_node_values(self, node_values):
        """
        Set the variables from desired node values of shape (n_nodes, 2, n_dim)

        Variables shared between nodes take the mean of their targets,
        fixed node values are not affected.
        """
        node_values = np.asarray(node_values, dtype=float)
        if node_values.shape != (self.n_nodes, 2, self.n_dim):
            raise ValueError(
                f"Expected node values of shape {(self.n_nodes, 2, self.n_dim)}, "
                f"got {node_values.shape}"
            )
        counts = self._selection.sum(axis=0)
        self.set_variables(self._selection.T @ node_values.ravel() / counts)


class NodesVariablesAll(NodesVariables):
    """Every position and velocity of every node is optimized (base motion)"""

    def _build_index_map(self):
        index_map = []
        for node in range(self.n_nodes):
            for deriv in (Dx.POS, Dx.VEL):
                for dim in range(self.n_dim):
                    index_map.append([(node, deriv, dim)])
        return index_map


class NodesVariablesPhaseBased(NodesVariables):
    """
    Nodes of an endeffector spline organized in alternating phases

    Constant phases are represented by one polynomial whose start and end
    node are identical with zero velocity. All other phases are split into
    `n_polys_in_changing_phase` polynomials with free nodes.

    Args:
        phase_count: number of contact/swing phases
        first_phase_constant: whether the first phase is a constant one
        name: variable set name
        n_dim: dimension of the represented quantity
        n_polys_in_changing_phase: polynomials per non-constant phase
    """

    def __init__(self, phase_count, first_phase_constant, name, n_dim,
                 n_polys_in_changing_phase):
        self.phase_count = phase_count
        self.first_phase_constant = first_phase_constant
        self.n_polys_in_changing_phase = n_polys_in_changing_phase

        # (phase, poly_in_phase, n_polys_in_phase, is_constant) per polynomial
        self.polynomial_info = []
        for phase in range(phase_count):
            constant = self.is_constant_phase(phase)
            n_polys = 1 if constant else n_polys_in_changing_phase
            for i in range(n_polys):
                self.polynomial_info.append((phase, i, n_polys, constant))

        super().__init__(len(self.polynomial_info) + 1, n_dim, name)
        logger.debug("Built %r with %d polynomials", self, len(self.polynomial_info))

    def is_constant_phase(self, phase):
        first = self.first_phase_constant
        return first if phase % 2 == 0 else not first

    def is_constant_node(self, node):
        """Node is the start or end of a constant polynomial"""
        polys = self.polynomial_info
        before = node > 0 and polys[node - 1][3]
        after = node < len(polys) and polys[node][3]
        return before or after


class NodesVariablesEEMotion(NodesVariablesPhaseBased):
    """
    Endeffector positions: constant during stance, free during swing

    During stance start and end node of the phase share the same position
    variables and have zero velocity.
    """

    def __init__(self, phase_count, is_in_contact_at_start, ee, n_polys_in_swing=2):
        super().__init__(phase_count, is_in_contact_at_start, ee_motion_nodes(ee),
                         n_dim=3, n_polys_in_changing_phase=n_polys_in_swing)

    def _build_index_map(self):
        index_map = []
        node = 0
        while node < self.n_nodes:
            if self.is_constant_node(node):
                for dim in range(self.n_dim):
                    index_map.append([(node, Dx.POS, dim), (node + 1, Dx.POS, dim)])
                # the next node belongs to the same stance phase
                node += 2
            else:
                for dim in range(self.n_dim):
                    index_map.append([(node, Dx.POS, dim)])
                    index_map.append([(node, Dx.VEL, dim)])
                node += 1
        return index_map


class NodesVariablesEEForce(NodesVariablesPhaseBased):
    """
    Endeffector forces: free during stance, zero during swing

    Nodes touching a swing phase are not optimized and stay at zero, so the
    force vanishes at lift-off and touch-down.
    """

    def __init__(self, phase_count, is_in_contact_at_start, ee, n_polys_in_stance=3):
        super().__init__(phase_count, not is_in_contact_at_start, ee_force_nodes(ee),
                         n_dim=3, n_polys_in_changing_phase=n_polys_in_stance)

    def _build_index_map(self):
        index_map = []
        for node in range(self.n_nodes):
            if self.is_constant_node(node):
                continue
            for dim in range(self.n_dim):
                index_map.append([(node, Dx.POS, dim)])
                index_map.append([(node, Dx.VEL, dim)])
        return index_map


class PhaseDurations(VariableSet):
    """
    Durations of the contact/swing phases of one endeffector

    The total duration is fixed, so only the first n_phases-1 durations
    are optimization variables and the last one is whatever remains. An
    endeffector with a single phase has no variables.

    Args:
        ee: endeffector index
        timings: initial duration of every phase
        is_first_phase_in_contact: whether the endeffector starts in stance
        min_duration, max_duration: bounds on each optimized duration
    """

    def __init__(self, ee, timings, is_first_phase_in_contact,
                 min_duration=0.1, max_duration=1.0):
        timings = np.asarray(timings, dtype=float)
        if timings.size < 1:
            raise ValueError("An endeffector needs at least one phase")
        if np.any(timings <= 0.0):
            raise ValueError(f"Phase durations must be positive, got {timings}")

        super().__init__(timings.size - 1, ee_schedule(ee))
        self.ee = ee
        self.t_total = float(timings.sum())
        self.is_first_phase_in_contact = is_first_phase_in_contact
        self.phase_duration_bounds = Bounds(min_duration, max_duration)
        self.set_variables(timings[:-1])

    def get_phase_count(self):
        return self.get_rows() + 1

    def get_phase_durations(self):
        x = self.get_values()
        return np.append(x, self.t_total - x.sum())

    def get_jacobian_of_durations(self):
        """d(phase durations)/d(variables), shape (n_phases, n_vars)"""
        n = self.get_rows()
        return np.vstack([np.eye(n), -np.ones((1, n))])

    def is_contact_phase(self, phase):
        return self.is_first_phase_in_contact == (phase % 2 == 0)

    def get_bounds(self):
        return [self.phase_duration_bounds] * self.get_rows()


class OptimizationVariables:
    """
    Ordered composite of all variable sets

    The stacked variable vector concatenates the sets in insertion order,
    which also defines the column layout of the full Jacobian.
    """

    def __init__(self, variable_sets=()):
        self._sets = {}
        for variable_set in variable_sets:
            self.add_component(variable_set)

    def add_component(self, variable_set):
        if variable_set.name in self._sets:
            raise ValueError(f"Variable set '{variable_set.name}' already exists")
        self._sets[variable_set.name] = variable_set

    def get_component(self, name):
        return self._sets[name]

    def get_components(self):
        return list(self._sets.values())

    def __contains__(self, name):
        return name in self._sets

    def get_rows(self):
        return sum(s.get_rows() for s in self._sets.values())

    def get_column_slice(self, name):
        start = 0
        for variable_set in self._sets.values():
            if variable_set.name == name:
                return slice(start, start + variable_set.get_rows())
            start += variable_set.get_rows()
        raise KeyError(name)

    def get_values(self):
        if not self._sets:
            return np.zeros(0)
        return np.concatenate([s.get_values() for s in self._sets.values()])

    def set_variables(self, x):
        x = np.asarray(x, dtype=float).ravel()
        if x.size != self.get_rows():
            raise ValueError(f"Expected {self.get_rows()} variables, got {x.size}")
        for variable_set in self._sets.values():
            variable_set.set_variables(x[self.get_column_slice(variable_set.name)])

    def get_bounds(self):
        bounds = []
        for variable_set in self._sets.values():
            bounds.extend(variable_set.get_bounds())
        return bounds
