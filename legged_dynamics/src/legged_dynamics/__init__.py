"""
Dynamic constraint of a spline based legged robot trajectory optimization
"""

__version__ = "1.0.0"

from .robot_model import RobotModel
from .dynamics import DynamicModel, ModelState, SingleRigidBodyDynamics
from .polynomial import CubicHermitePolynomial, SplineDomainError, State
from .variables import (
    NodesVariablesAll,
    NodesVariablesEEForce,
    NodesVariablesEEMotion,
    OptimizationVariables,
    PhaseDurations,
)
from .spline import NodeSpline, PhaseSpline
from .euler_converter import EulerConverter
from .spline_holder import SplineHolder
from .time_discretization_constraint import ConstraintSet, TimeDiscretizationConstraint
from .dynamic_constraint import DynamicConstraint
from .analysis import DerivativeChecker, numerical_jacobian

__all__ = [
    'RobotModel',
    'DynamicModel',
    'ModelState',
    'SingleRigidBodyDynamics',
    'CubicHermitePolynomial',
    'SplineDomainError',
    'State',
    'NodesVariablesAll',
    'NodesVariablesEEForce',
    'NodesVariablesEEMotion',
    'OptimizationVariables',
    'PhaseDurations',
    'NodeSpline',
    'PhaseSpline',
    'EulerConverter',
    'SplineHolder',
    'ConstraintSet',
    'TimeDiscretizationConstraint',
    'DynamicConstraint',
    'DerivativeChecker',
    'numerical_jacobian',
]
