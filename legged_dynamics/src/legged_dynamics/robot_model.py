"""
robot_model.py
Robot Model with Physical Parameters

Loads the constants of the single rigid body model (mass, inertia,
gravity) and the geometry of the legs from a YAML file.
"""

import logging
from pathlib import Path

import numpy as np
import yaml

from .cartesian_dimensions import K3D, Dim3D


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "robot_params.yaml"


def _parse_inertia(values):
    inertia = np.asarray(values, dtype=float)
    if inertia.shape == (3,):
        inertia = np.diag(inertia)
    if inertia.shape != (3, 3):
        raise ValueError(f"Body inertia must be 3 values or a 3x3 matrix, got shape {inertia.shape}")
    if not np.allclose(inertia, inertia.T):
        raise ValueError("Body inertia must be symmetric")
    return inertia


class RobotModel:
    """
    Legged robot described as a single rigid body with massless legs

    Attributes:
        name: robot identifier
        mass: Total robot mass (kg)
        inertia: Body inertia about the CoM (3x3, kg*m^2)
        gravity: Gravitational acceleration (m/s^2)
        n_legs: number of endeffectors
        leg_positions: (n_legs, 3) hip positions in base frame
    """

    def __init__(self, config_path=None):
        """Initialize robot with parameters from config file"""

        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        with open(config_path, 'r') as f:
            params = yaml.safe_load(f)

        self.name = params.get('name', Path(config_path).stem)

        # Physical properties
        self.mass = float(params['mass'])
        self.inertia = _parse_inertia(params['body_inertia'])
        self.gravity = float(params['gravity'])

        if self.mass <= 0.0:
            raise ValueError(f"Robot mass must be positive, got {self.mass}")
        if self.gravity <= 0.0:
            raise ValueError(f"Gravity magnitude must be positive, got {self.gravity}")

        # Geometry
        self.n_legs = int(params['n_legs'])
        self.body_length = float(params['body_length'])
        self.body_width = float(params['body_width'])
        self.initial_height = float(params['initial_height'])

        self.leg_positions = self._build_leg_positions()
        logger.debug("Loaded %r from %s", self, config_path)

    def _build_leg_positions(self):
        """
        Hip positions in base frame

        Quadrupeds use the order front-left, front-right, rear-left,
        rear-right. Bipeds only get the left and right hip, a monoped
        sits directly below the CoM.
        """
        l, w = self.body_length / 2, self.body_width / 2

        if self.n_legs == 4:
            return np.array([
                [l, w, 0.0],    # FL
                [l, -w, 0.0],   # FR
                [-l, w, 0.0],   # RL
                [-l, -w, 0.0],  # RR
            ])
        if self.n_legs == 2:
            return np.array([[0.0, w, 0.0], [0.0, -w, 0.0]])
        if self.n_legs == 1:
            return np.zeros((1, 3))

        raise ValueError(f"Unsupported number of legs: {self.n_legs}")

    def get_nominal_stance(self, base_pos=None):
        """
        Foot positions in world frame when standing below the hips

        Args:
            base_pos: CoM position, defaults to (0, 0, initial_height)

        Returns:
            (n_legs, 3) array of foot positions on the ground
        """
        if base_pos is None:
            base_pos = np.array([0.0, 0.0, self.initial_height])

        feet = self.leg_positions + np.asarray(base_pos, dtype=float)
        feet[:, Dim3D.Z] = 0.0
        return feet

    def get_standing_force(self):
        """Vertical force per leg that carries the weight when all legs are on the ground"""
        force = np.zeros(K3D)
        force[Dim3D.Z] = self.mass * self.gravity / self.n_legs
        return force

    def __repr__(self):
        return f"RobotModel(name={self.name}, mass={self.mass}kg, n_legs={self.n_legs}, gravity={self.gravity}m/s²)"
