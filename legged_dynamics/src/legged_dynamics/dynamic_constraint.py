"""
dynamic_constraint.py
Dynamic constraint of the base motion

At every evaluation instant the acceleration of the base splines must
equal the acceleration the dynamic model computes from the current
contact forces:

    g(t) = a_model(t) - a_spline(t)

The model acceleration leaves out gravity, so the row of the vertical
linear acceleration is bounded to [g, g] and all other rows to zero.
"""

import logging

import numpy as np

from .bounds import BOUND_ZERO, Bounds
from .cartesian_dimensions import ALL_DIM_6D, ANGULAR, K6D, LINEAR, Dim6D, Dx
from .euler_converter import EulerConverter
from .time_discretization_constraint import TimeDiscretizationConstraint
from .variable_names import (BASE_ANG_NODES, BASE_LIN_NODES, ee_force_nodes,
                             ee_motion_nodes, ee_schedule)


logger = logging.getLogger(__name__)


class DynamicConstraint(TimeDiscretizationConstraint):
    """
    Ensures the base accelerations are consistent with the contact forces

    Args:
        model: DynamicModel evaluated at every instant
        spline_holder: SplineHolder with the splines of the current variables
        evaluation_times: instants at which the dynamics are enforced
    """

    def __init__(self, model, spline_holder, evaluation_times):
        super().__init__(evaluation_times, "dynamic")

        if model.ee_count != spline_holder.ee_count:
            raise ValueError(
                f"Model has {model.ee_count} endeffectors, splines have {spline_holder.ee_count}"
            )

        t_end = spline_holder.get_total_time()
        if self.evaluation_times[0] < 0.0 or self.evaluation_times[-1] > t_end + 1e-10:
            raise ValueError(
                f"Evaluation times [{self.evaluation_times[0]}, {self.evaluation_times[-1]}] "
                f"exceed the trajectory duration {t_end}"
            )

        self.model = model

        # splines read the variables on every query, so they stay up to date
        self.base_linear = spline_holder.base_linear
        self.base_angular = EulerConverter(spline_holder.base_angular)
        self.ee_forces = spline_holder.ee_force
        self.ee_motion = spline_holder.ee_motion

        self.set_rows(self.get_number_of_nodes() * K6D)
        logger.debug("Dynamic constraint with %d instants and %d rows",
                     self.get_number_of_nodes(), self.get_rows())

    def get_row(self, k, dim):
        return K6D * k + dim

    def get_model_state(self, t):
        """Inputs of the dynamic model at time `t` from the current splines"""
        com_pos = self.base_linear.get_point(t).p
        omega = self.base_angular.get_angular_velocity_in_world(t)

        ee_force = [spline.get_point(t).p for spline in self.ee_forces]
        ee_pos = [spline.get_point(t).p for spline in self.ee_motion]

        return self.model.make_state(com_pos, omega, ee_force, ee_pos)

    def update_constraint_at_instance(self, t, k, g):
        # acceleration the system should have, given by physics
        state = self.get_model_state(t)
        acc_model = self.model.get_base_acceleration_in_world(state)

        # acceleration the base polynomials have with the current variables
        acc_parametrization = np.zeros(K6D)
        acc_parametrization[ANGULAR] = self.base_angular.get_angular_acceleration_in_world(t)
        acc_parametrization[LINEAR] = self.base_linear.get_point(t).a

        rows = slice(self.get_row(k, Dim6D.AX), self.get_row(k, Dim6D.AX) + K6D)
        g[rows] = acc_model - acc_parametrization

    def update_bounds_at_instance(self, t, k, bounds):
        gravity = self.model.g

        for dim in ALL_DIM_6D:
            if dim == Dim6D.LZ:
                bounds[self.get_row(k, dim)] = Bounds(gravity, gravity)
            else:
                bounds[self.get_row(k, dim)] = BOUND_ZERO

    def update_jacobian_at_instance(self, t, k, var_set, jac):
        n = jac.shape[1]
        jac_model = None
        jac_parametrization = np.zeros((K6D, n))
        state = self.get_model_state(t)

        # sensitivity of the dynamic constraint w.r.t. the base variables
        if var_set == BASE_LIN_NODES:
            jac_base_lin_pos = self.base_linear.get_jacobian_wrt_nodes(t, Dx.POS)
            jac_model = self.model.get_jacobian_of_acc_wrt_base_lin(state, jac_base_lin_pos)
            jac_parametrization[LINEAR] = self.base_linear.get_jacobian_wrt_nodes(t, Dx.ACC)

        if var_set == BASE_ANG_NODES:
            jac_ang_vel = self.base_angular.get_deriv_of_ang_vel_wrt_euler_nodes(t)
            jac_model = self.model.get_jacobian_of_acc_wrt_base_ang(state, jac_ang_vel)
            jac_parametrization[ANGULAR] = self.base_angular.get_deriv_of_ang_acc_wrt_euler_nodes(t)

        # sensitivity of the dynamic constraint w.r.t. the endeffector variables
        for ee in range(self.model.ee_count):
            if var_set == ee_force_nodes(ee):
                jac_ee_force = self.ee_forces[ee].get_jacobian_wrt_nodes(t, Dx.POS)
                jac_model = self.model.get_jacobian_of_acc_wrt_force(state, jac_ee_force, ee)

            if var_set == ee_motion_nodes(ee):
                jac_ee_pos = self.ee_motion[ee].get_jacobian_wrt_nodes(t, Dx.POS)
                jac_model = self.model.get_jacobian_of_acc_wrt_ee_pos(state, jac_ee_pos, ee)

            if var_set == ee_schedule(ee):
                # durations move both the force and the foot position at time t
                jac_f_dT = self.ee_forces[ee].get_jacobian_of_pos_wrt_durations(t)
                jac_model = self.model.get_jacobian_of_acc_wrt_force(state, jac_f_dT, ee)

                jac_x_dT = self.ee_motion[ee].get_jacobian_of_pos_wrt_durations(t)
                jac_model = jac_model + self.model.get_jacobian_of_acc_wrt_ee_pos(state, jac_x_dT, ee)

        if jac_model is None:
            return

        rows = slice(self.get_row(k, Dim6D.AX), self.get_row(k, Dim6D.AX) + K6D)
        jac[rows, :] = jac_model - jac_parametrization
