"""
Rotation math and the base pose type shared by kinematics and costs.

Every function takes an array namespace `xp` (``numpy`` or ``jax.numpy``)
so the same code runs on plain floats and on JAX tracers. Matrices are
built from nested lists with ``xp.array`` rather than in-place updates,
which keeps the NumPy and JAX paths identical.
"""

from dataclasses import dataclass
from typing import Any, Sequence

import jax.numpy as jnp
import numpy as np
from jax import Array


@dataclass(frozen=True)
class BasePose:
    """
    Pose of a robot base in the world frame.

    Attributes:
        position: A (3,) array with the base origin [x, y, z].
        rotation: A (3, 3) rotation matrix mapping base to world frame.
    """
    position: Array
    rotation: Array

    @classmethod
    def identity(cls, xp: Any = jnp) -> "BasePose":
        """Base pose coinciding with the world frame (fixed-base robots)."""
        return cls(position=xp.zeros(3), rotation=xp.eye(3))

    def transform_point(self, point: Array) -> Array:
        """Map a point expressed in the base frame to the world frame."""
        return self.rotation @ point + self.position


def normalize_quaternion(quat: Sequence[float]) -> np.ndarray:
    """
    Normalize a constant quaternion [w, x, y, z] to unit length.

    Raises:
        ValueError: If the quaternion has (numerically) zero norm.
    """
    quat = np.asarray(quat, dtype=np.float64)
    norm = np.linalg.norm(quat)
    if not np.isfinite(norm) or norm < 1e-12:
        raise ValueError(f"Cannot normalize quaternion {quat.tolist()}")
    return quat / norm


def rotation_matrix_from_quaternion(quat: Array, xp: Any = jnp) -> Array:
    """
    Convert a quaternion [w, x, y, z] to a 3x3 rotation matrix.

    Args:
        quat: A (4,) array with scalar-first convention [w, x, y, z].
        xp: Array namespace used to build the result.

    Returns:
        A (3, 3) rotation matrix.
    """
    w, x, y, z = quat[0], quat[1], quat[2], quat[3]

    norm = xp.sqrt(w*w + x*x + y*y + z*z)
    w, x, y, z = w/norm, x/norm, y/norm, z/norm

    return xp.array([
        [1 - 2*(y*y + z*z), 2*(x*y - z*w), 2*(x*z + y*w)],
        [2*(x*y + z*w), 1 - 2*(x*x + z*z), 2*(y*z - x*w)],
        [2*(x*z - y*w), 2*(y*z + x*w), 1 - 2*(x*x + y*y)]
    ])


def rotation_x(angle: Array, xp: Any = jnp) -> Array:
    """Elementary rotation about the X axis."""
    c, s = xp.cos(angle), xp.sin(angle)
    return xp.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c]
    ])


def rotation_y(angle: Array, xp: Any = jnp) -> Array:
    """Elementary rotation about the Y axis."""
    c, s = xp.cos(angle), xp.sin(angle)
    return xp.array([
        [c, 0.0, s],
        [0.0, 1.0, 0.0],
        [-s, 0.0, c]
    ])


def rotation_z(angle: Array, xp: Any = jnp) -> Array:
    """Elementary rotation about the Z axis."""
    c, s = xp.cos(angle), xp.sin(angle)
    return xp.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0]
    ])


def rotation_matrix_from_euler_xyz(angles: Array, xp: Any = jnp) -> Array:
    """
    Build a rotation matrix from intrinsic X-Y-Z Euler angles.

    The result is ``Rx(angles[0]) @ Ry(angles[1]) @ Rz(angles[2])``.

    Args:
        angles: A (3,) array [roll, pitch, yaw] about X, Y and Z.
        xp: Array namespace used to build the result.

    Returns:
        A (3, 3) rotation matrix.
    """
    return (
        rotation_x(angles[0], xp)
        @ rotation_y(angles[1], xp)
        @ rotation_z(angles[2], xp)
    )


def rotation_about_axis(axis: np.ndarray, angle: Array, xp: Any = jnp) -> Array:
    """
    Rotation by `angle` about a constant unit `axis` (Rodrigues' formula).
    """
    x, y, z = float(axis[0]), float(axis[1]), float(axis[2])
    K = np.array([
        [0.0, -z, y],
        [z, 0.0, -x],
        [-y, x, 0.0]
    ])
    c, s = xp.cos(angle), xp.sin(angle)
    return xp.eye(3) + s * K + (1 - c) * (K @ K)
