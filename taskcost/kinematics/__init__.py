"""
Kinematics Package

Differentiable forward kinematics for cost terms.

    RobotModel: URDF-backed provider with one or more end-effectors
    BasePose: world-frame pose of the robot base
    KinematicsProvider: protocol cost terms program against
"""

from taskcost.kinematics.base import KinematicsProvider
from taskcost.kinematics.robot import RobotModel
from taskcost.kinematics.utils import (
    BasePose,
    normalize_quaternion,
    rotation_matrix_from_euler_xyz,
    rotation_matrix_from_quaternion,
)

__all__ = [
    "KinematicsProvider",
    "RobotModel",
    "BasePose",
    "normalize_quaternion",
    "rotation_matrix_from_euler_xyz",
    "rotation_matrix_from_quaternion",
]
