"""
Loading task-space pose term parameters from YAML configuration.

A configuration file holds one top-level section per cost term:

    taskspace_pose:
      eeId: 2
      Q_rot: 0.5
      Q_pos: [[1, 0, 0], [0, 1, 0], [0, 0, 1]]   # or a flat row-major list
      x_des: [0.0, 0.0, 1.0]
      quat_des: [1.0, 0.0, 0.0, 0.0]            # w, x, y, z
      eulerXyz_des: [0.0, 0.0, 0.0]             # used if quat_des is absent

The desired orientation is resolved by an ordered fallback: a well-formed
quaternion wins, otherwise Euler angles are used, otherwise loading fails
with MissingOrientation.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, NamedTuple, Optional, Tuple, Union

import numpy as np
import yaml

from taskcost.errors import MalformedField, MissingField, MissingOrientation
from taskcost.kinematics.utils import (
    normalize_quaternion,
    rotation_matrix_from_euler_xyz,
    rotation_matrix_from_quaternion,
)

logger = logging.getLogger(__name__)

EE_ID_FIELD = "eeId"
Q_ROT_FIELD = "Q_rot"
Q_POS_FIELD = "Q_pos"
X_DES_FIELD = "x_des"
QUAT_DES_FIELD = "quat_des"
EULER_DES_FIELD = "eulerXyz_des"


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.float64)
    array.setflags(write=False)
    return array


class ConfigSource:
    """
    Read-only view of named configuration sections.

    Every read is addressed by ``(section, field)`` and either returns a
    value of the requested shape or raises MissingField / MalformedField.
    """

    def __init__(self, sections: Mapping[str, Any], origin: str = "<dict>"):
        if not isinstance(sections, Mapping):
            raise MalformedField(
                f"Configuration {origin} must be a mapping of sections, "
                f"got {type(sections).__name__}"
            )
        self._sections = sections
        self.origin = origin

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ConfigSource":
        """Parse a YAML file into a configuration source."""
        path = Path(path)
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(data if data is not None else {}, origin=str(path))

    def _raw(self, section: str, field: str) -> Any:
        data = self._sections.get(section)
        if data is None:
            raise MissingField(
                f"Section '{section}' not found in {self.origin}",
                section=section,
            )
        if not isinstance(data, Mapping):
            raise MalformedField(
                f"Section '{section}' in {self.origin} is not a mapping",
                section=section,
            )
        if field not in data:
            raise MissingField(
                f"Field '{field}' not found in section '{section}' of {self.origin}",
                section=section,
                field=field,
            )
        return data[field]

    def load_scalar(self, section: str, field: str) -> float:
        """
        Read a number. Strings such as '1e-2' (which YAML 1.1 does not
        resolve to floats) are converted like the entries of a vector.
        """
        value = self._raw(section, field)
        malformed = MalformedField(
            f"Field '{section}.{field}' must be a number, got {value!r}",
            section=section,
            field=field,
        )
        if value is None or isinstance(value, bool):
            raise malformed
        try:
            scalar = np.array(value, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise malformed from e
        if scalar.ndim != 0:
            raise malformed
        return float(scalar)

    def load_int(self, section: str, field: str) -> int:
        value = self._raw(section, field)
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedField(
                f"Field '{section}.{field}' must be an integer, got {value!r}",
                section=section,
                field=field,
            )
        return value

    def _load_array(self, section: str, field: str, shape: Tuple[int, ...]) -> np.ndarray:
        value = self._raw(section, field)
        try:
            array = np.array(value, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise MalformedField(
                f"Field '{section}.{field}' is not numeric: {e}",
                section=section,
                field=field,
            ) from e

        # Flat row-major lists and column vectors are reshaped
        if array.ndim >= 1 and array.size == int(np.prod(shape)):
            array = array.reshape(shape)
        if array.shape != shape:
            raise MalformedField(
                f"Field '{section}.{field}' must have shape {shape}, "
                f"got {array.shape}",
                section=section,
                field=field,
            )
        return array

    def load_matrix(self, section: str, field: str, shape: Tuple[int, int]) -> np.ndarray:
        """
        Read a matrix given as nested rows or as a flat row-major list.
        """
        return self._load_array(section, field, shape)

    def load_vector(self, section: str, field: str, length: int) -> np.ndarray:
        return self._load_array(section, field, (length,))


class OrientationKind(enum.Enum):
    QUATERNION = "quaternion"
    EULER = "euler"
    MISSING = "missing"


class OrientationOutcome(NamedTuple):
    """Result of the ordered orientation lookup."""
    kind: OrientationKind
    rotation: Optional[np.ndarray]  # (3, 3), None when MISSING
    values: Optional[np.ndarray]  # the raw quaternion or Euler angles
    failures: List[str]  # why earlier attempts were skipped


def resolve_orientation(source: ConfigSource, section: str) -> OrientationOutcome:
    """
    Look up the desired orientation: quaternion first, then Euler angles.

    A quaternion that is present but malformed (wrong length, not
    numeric, zero norm) does not stop the lookup; the Euler field is tried
    next. The quaternion is normalized before use, like a quaternion passed
    to the term constructor.
    """
    failures = []

    try:
        quat = source.load_vector(section, QUAT_DES_FIELD, 4)
        try:
            quat = normalize_quaternion(quat)
        except ValueError as e:
            raise MalformedField(str(e), section=section, field=QUAT_DES_FIELD) from e
        rotation = rotation_matrix_from_quaternion(quat, np)
        return OrientationOutcome(OrientationKind.QUATERNION, rotation, quat, failures)
    except (MissingField, MalformedField) as e:
        failures.append(str(e))
        logger.debug("No usable quaternion: %s", e)

    try:
        euler = source.load_vector(section, EULER_DES_FIELD, 3)
        rotation = rotation_matrix_from_euler_xyz(euler, np)
        return OrientationOutcome(OrientationKind.EULER, rotation, euler, failures)
    except (MissingField, MalformedField) as e:
        failures.append(str(e))
        logger.debug("No usable Euler angles: %s", e)

    return OrientationOutcome(OrientationKind.MISSING, None, None, failures)


@dataclass(frozen=True)
class TermParameters:
    """
    Immutable parameters of a task-space pose term.

    Attributes:
        ee_index: Index of the end-effector in the kinematics provider.
        q_pos: (3, 3) weighting of the squared position error.
        q_rot: Non-negative weight of the rotation error.
        position_des: (3,) reference position in world frame.
        rotation_des: (3, 3) reference rotation in world frame.
    """
    ee_index: int
    q_pos: np.ndarray
    q_rot: float
    position_des: np.ndarray
    rotation_des: np.ndarray

    @classmethod
    def create(
        cls,
        ee_index: int,
        q_pos: Any,
        q_rot: float,
        position_des: Any,
        rotation_des: Any
    ) -> "TermParameters":
        """Validate shapes and freeze copies of the arrays."""
        if isinstance(ee_index, bool) or int(ee_index) != ee_index or ee_index < 0:
            raise ValueError(f"End-effector index must be a non-negative integer, got {ee_index!r}")
        q_rot = float(q_rot)
        if not q_rot >= 0.0:
            raise ValueError(f"Rotation weight must be non-negative, got {q_rot}")

        q_pos = np.asarray(q_pos, dtype=np.float64)
        position_des = np.asarray(position_des, dtype=np.float64)
        rotation_des = np.asarray(rotation_des, dtype=np.float64)
        for name, array, shape in (
            ("Q_pos", q_pos, (3, 3)),
            ("x_des", position_des, (3,)),
            ("rotation_des", rotation_des, (3, 3)),
        ):
            if array.shape != shape:
                raise ValueError(f"{name} must have shape {shape}, got {array.shape}")

        return cls(
            ee_index=int(ee_index),
            q_pos=_frozen(q_pos),
            q_rot=q_rot,
            position_des=_frozen(position_des),
            rotation_des=_frozen(rotation_des),
        )


def load_term_parameters(
    source: ConfigSource,
    section: str,
    verbose: bool = False
) -> TermParameters:
    """
    Load all parameters of a task-space pose term from `section`.

    Args:
        source: The configuration to read from.
        section: Name of the term's section.
        verbose: Log the loaded values at INFO instead of DEBUG level.

    Returns:
        Fully populated TermParameters.

    Raises:
        MissingField: A required field or the section is absent.
        MalformedField: A field has the wrong type, shape or value.
        MissingOrientation: Neither quat_des nor eulerXyz_des is usable.
    """
    level = logging.INFO if verbose else logging.DEBUG
    logger.log(level, "Loading task-space pose term '%s' from %s", section, source.origin)

    ee_index = source.load_int(section, EE_ID_FIELD)
    q_rot = source.load_scalar(section, Q_ROT_FIELD)
    q_pos = source.load_matrix(section, Q_POS_FIELD, (3, 3))
    position_des = source.load_vector(section, X_DES_FIELD, 3)

    outcome = resolve_orientation(source, section)
    if outcome.kind is OrientationKind.MISSING:
        raise MissingOrientation(
            f"Could not find a desired end-effector orientation in section "
            f"'{section}' of {source.origin}: " + "; ".join(outcome.failures),
            section=section,
        )

    try:
        params = TermParameters.create(ee_index, q_pos, q_rot, position_des, outcome.rotation)
    except ValueError as e:
        raise MalformedField(str(e), section=section) from e

    logger.log(level, "Read %s as %s = %s", outcome.kind.value,
               QUAT_DES_FIELD if outcome.kind is OrientationKind.QUATERNION else EULER_DES_FIELD,
               outcome.values.tolist())
    logger.log(level, "Read eeId = %d, Q_rot = %g", params.ee_index, params.q_rot)
    logger.log(level, "Read Q_pos = %s", params.q_pos.tolist())
    logger.log(level, "Read x_des = %s", params.position_des.tolist())
    return params
