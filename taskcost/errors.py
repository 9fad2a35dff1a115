"""
Exceptions raised while building and evaluating cost terms.

All errors are fatal for the term under construction: no default
orientation, weight or reference is ever substituted.
"""


class TaskCostError(Exception):
    """Base class for every error raised by this package."""


class DimensionMismatch(TaskCostError, ValueError):
    """State vector size disagrees with the robot and base configuration."""


class ConfigError(TaskCostError):
    """A term could not be loaded from its configuration section."""

    def __init__(self, message: str, section: str = None, field: str = None):
        super().__init__(message)
        self.section = section
        self.field = field

    def __str__(self) -> str:
        return self.args[0]


class MissingField(ConfigError, KeyError):
    """A required field (or the whole section) is absent."""


class MalformedField(ConfigError, ValueError):
    """A field is present but has the wrong type or shape."""


class MissingOrientation(ConfigError):
    """Neither a quaternion nor Euler angles were found for the target."""
