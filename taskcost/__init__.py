"""
Task-space cost terms with differentiable forward kinematics.

    from taskcost import RobotModel, TaskspacePoseTerm
"""

from taskcost.costs import TaskspacePoseTerm
from taskcost.errors import (
    ConfigError,
    DimensionMismatch,
    MalformedField,
    MissingField,
    MissingOrientation,
    TaskCostError,
)
from taskcost.kinematics import BasePose, RobotModel

__all__ = [
    "TaskspacePoseTerm",
    "RobotModel",
    "BasePose",
    "TaskCostError",
    "DimensionMismatch",
    "ConfigError",
    "MissingField",
    "MalformedField",
    "MissingOrientation",
]
