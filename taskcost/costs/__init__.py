"""
Cost Terms Package

Task-space cost terms for trajectory optimization and MPC, evaluated with
NumPy for plain values or with JAX for automatic differentiation.

Terms:
    TaskspacePoseTerm: End-effector position + orientation tracking
"""

from taskcost.costs import losses
from taskcost.costs.config import (
    ConfigSource,
    OrientationKind,
    OrientationOutcome,
    TermParameters,
    load_term_parameters,
    resolve_orientation,
)
from taskcost.costs.state import StateExtractor, make_state_extractor
from taskcost.costs.taskspace_pose import TaskspacePoseTerm

__all__ = [
    "TaskspacePoseTerm",
    "ConfigSource",
    "OrientationKind",
    "OrientationOutcome",
    "TermParameters",
    "load_term_parameters",
    "resolve_orientation",
    "StateExtractor",
    "make_state_extractor",
    "losses",
]
