"""
variable_names.py
Canonical names of the optimization variable sets

Constraints look up the Jacobian block they are asked for by these
names, so every producer and consumer must go through this module.
"""

BASE_LIN_NODES = "base-lin"
BASE_ANG_NODES = "base-ang"


def ee_motion_nodes(ee):
    """Nodes of the motion spline of endeffector `ee`"""
    return "ee-motion_" + str(ee)


def ee_force_nodes(ee):
    """Nodes of the force spline of endeffector `ee`"""
    return "ee-force_" + str(ee)


def ee_schedule(ee):
    """Phase durations of endeffector `ee`"""
    return "ee-schedule" + str(ee)
