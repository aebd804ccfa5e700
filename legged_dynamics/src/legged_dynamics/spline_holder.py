"""
spline_holder.py
Splines of the base and endeffector motion linked to the variables
"""

import logging

import numpy as np

from .spline import NodeSpline, PhaseSpline


logger = logging.getLogger(__name__)


class SplineHolder:
    """
    All splines a constraint may need, built on the optimization variables

    Args:
        base_lin: NodesVariables of the CoM position
        base_ang: NodesVariables of the base euler angles
        base_poly_durations: fixed durations of the base polynomials
        ee_motion: NodesVariablesEEMotion per endeffector
        ee_force: NodesVariablesEEForce per endeffector
        phase_durations: PhaseDurations per endeffector
    """

    def __init__(self, base_lin, base_ang, base_poly_durations,
                 ee_motion, ee_force, phase_durations):
        if not len(ee_motion) == len(ee_force) == len(phase_durations):
            raise ValueError(
                f"Got {len(ee_motion)} motion, {len(ee_force)} force and "
                f"{len(phase_durations)} phase duration variable sets"
            )

        self.base_linear = NodeSpline(base_lin, base_poly_durations)
        self.base_angular = NodeSpline(base_ang, base_poly_durations)

        t_total = self.base_linear.get_total_time()
        for durations in phase_durations:
            if not np.isclose(durations.t_total, t_total, rtol=0.0, atol=1e-9):
                raise ValueError(
                    f"{durations.name} spans {durations.t_total}s, the base motion {t_total}s"
                )

        self.ee_motion = [PhaseSpline(m, d) for m, d in zip(ee_motion, phase_durations)]
        self.ee_force = [PhaseSpline(f, d) for f, d in zip(ee_force, phase_durations)]
        self.phase_durations = list(phase_durations)

        logger.debug("Linked splines for %d endeffectors over %.3fs",
                     self.ee_count, self.get_total_time())

    @property
    def ee_count(self):
        return len(self.ee_motion)

    def get_total_time(self):
        return self.base_linear.get_total_time()
