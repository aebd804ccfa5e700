"""
bounds.py
Lower/upper bound pairs handed to the NLP solver
"""

from typing import NamedTuple

import numpy as np


class Bounds(NamedTuple):
    lower: float
    upper: float

    def violation(self, value):
        """Distance of `value` to the interval (0 if inside)"""
        if value < self.lower:
            return self.lower - value
        if value > self.upper:
            return value - self.upper
        return 0.0


INF = np.inf

NO_BOUND = Bounds(-INF, INF)
BOUND_ZERO = Bounds(0.0, 0.0)
