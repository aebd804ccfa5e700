"""
cartesian_dimensions.py
Index conventions for 3D and 6D quantities

The 6D (base) quantities are ordered angular first, then linear, so
that rows 0-2 of a base acceleration hold the angular part and rows
3-5 the linear part.
"""

from enum import IntEnum


K3D = 3
K6D = 6


class Dim3D(IntEnum):
    X = 0
    Y = 1
    Z = 2


class Dim6D(IntEnum):
    AX = 0
    AY = 1
    AZ = 2
    LX = 3
    LY = 4
    LZ = 5


class Dx(IntEnum):
    """Derivative order of a spline quantity"""
    POS = 0
    VEL = 1
    ACC = 2


ALL_DIM_6D = tuple(Dim6D)

# rows of the angular and linear part of a 6D vector
ANGULAR = slice(int(Dim6D.AX), int(Dim6D.AX) + K3D)
LINEAR = slice(int(Dim6D.LX), int(Dim6D.LX) + K3D)
