import numpy as np
import pytest

from legged_dynamics.cartesian_dimensions import Dx
from legged_dynamics.dynamic_constraint import DynamicConstraint
from legged_dynamics.dynamics import SingleRigidBodyDynamics
from legged_dynamics.robot_model import RobotModel
from legged_dynamics.spline_holder import SplineHolder
from legged_dynamics.time_discretization_constraint import get_evaluation_times
from legged_dynamics.variable_names import BASE_ANG_NODES, BASE_LIN_NODES
from legged_dynamics.variables import (NodesVariablesAll, NodesVariablesEEForce,
                                       NodesVariablesEEMotion, OptimizationVariables,
                                       PhaseDurations)


T_TOTAL = 1.0
BASE_POLY_DURATIONS = [0.2] * 5

# ee 0 starts in stance, ee 1 in swing
TIMINGS = [[0.3, 0.25, 0.45], [0.2, 0.3, 0.2, 0.3]]
IN_CONTACT_AT_START = [True, False]

# none of these instants falls on a polynomial junction
DT_CONSTRAINT = 0.065


class Problem:
    """Variables, splines and dynamic constraint of one test scenario"""

    def __init__(self, model, timings, in_contact_at_start, evaluation_times):
        n_base_nodes = len(BASE_POLY_DURATIONS) + 1
        self.base_lin = NodesVariablesAll(n_base_nodes, 3, BASE_LIN_NODES)
        self.base_ang = NodesVariablesAll(n_base_nodes, 3, BASE_ANG_NODES)

        self.ee_motion, self.ee_force, self.durations = [], [], []
        for ee, (timing, contact) in enumerate(zip(timings, in_contact_at_start)):
            self.ee_motion.append(NodesVariablesEEMotion(len(timing), contact, ee))
            self.ee_force.append(NodesVariablesEEForce(len(timing), contact, ee))
            self.durations.append(PhaseDurations(ee, timing, contact))

        self.variables = OptimizationVariables(
            [self.base_lin, self.base_ang] + self.ee_motion + self.ee_force + self.durations
        )

        self.spline_holder = SplineHolder(self.base_lin, self.base_ang, BASE_POLY_DURATIONS,
                                          self.ee_motion, self.ee_force, self.durations)
        self.model = model
        self.constraint = DynamicConstraint(model, self.spline_holder, evaluation_times)
        self.constraint.link_with_variables(self.variables)

    def randomize(self, rng):
        """Random but well conditioned node values, durations untouched"""
        self.base_lin.set_variables(rng.normal(0.0, 0.3, self.base_lin.get_rows()))
        self.base_ang.set_variables(rng.uniform(-0.3, 0.3, self.base_ang.get_rows()))
        for motion in self.ee_motion:
            motion.set_variables(rng.normal(0.0, 0.3, motion.get_rows()))
        for force in self.ee_force:
            force.set_variables(rng.normal(0.0, 20.0, force.get_rows()))


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def robot():
    return RobotModel()


@pytest.fixture
def biped_model():
    inertia = np.array([
        [1.0, 0.1, 0.05],
        [0.1, 1.5, 0.02],
        [0.05, 0.02, 2.0],
    ])
    return SingleRigidBodyDynamics(mass=20.0, inertia=inertia, ee_count=2)


@pytest.fixture
def random_problem(biped_model, rng):
    problem = Problem(biped_model, TIMINGS, IN_CONTACT_AT_START,
                      get_evaluation_times(T_TOTAL, DT_CONSTRAINT))
    problem.randomize(rng)
    return problem


def set_constant_nodes(node_variables, pos):
    """Every node at `pos` with zero velocity"""
    target = np.zeros((node_variables.n_nodes, 2, node_variables.n_dim))
    target[:, Dx.POS] = pos
    node_variables.set_from_node_values(target)


@pytest.fixture
def static_problem(robot):
    """
    Quadruped standing still with every foot in stance for the whole
    trajectory, carrying a quarter of the weight each.
    """
    model = SingleRigidBodyDynamics.from_robot(robot)
    timings = [[T_TOTAL]] * robot.n_legs
    problem = Problem(model, timings, [True] * robot.n_legs,
                      get_evaluation_times(T_TOTAL, 0.1))

    com = np.array([0.0, 0.0, robot.initial_height])
    set_constant_nodes(problem.base_lin, com)
    set_constant_nodes(problem.base_ang, np.zeros(3))
    for ee, foot in enumerate(robot.get_nominal_stance(com)):
        set_constant_nodes(problem.ee_motion[ee], foot)
        set_constant_nodes(problem.ee_force[ee], robot.get_standing_force())
    return problem


@pytest.fixture
def make_problem():
    """Problem with the default two-legged schedule at custom instants"""
    def _make(model, evaluation_times, timings=TIMINGS, in_contact_at_start=IN_CONTACT_AT_START):
        return Problem(model, timings, in_contact_at_start, evaluation_times)
    return _make
