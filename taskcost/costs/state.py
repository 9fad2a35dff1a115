"""
Decoding of flat generalized-state vectors into base pose and joints.

State layouts (n = number of joints):

    fixed base:               [q (n), dq (n)]                   -> 2n
    floating base, Euler XYZ: [euler (3), pos (3), q (n), v (6 + n)]  -> 2(6 + n)
    floating base, quaternion: [quat wxyz (4), pos (3), q (n), v (6 + n)] -> 2(6 + n) + 1

The layout is decided once from the declared state dimension by
`make_state_extractor`; the returned extractor never re-decides it.
"""

from typing import Any, Tuple

import jax.numpy as jnp
from jax import Array

from taskcost.errors import DimensionMismatch
from taskcost.kinematics.utils import (
    BasePose,
    rotation_matrix_from_euler_xyz,
    rotation_matrix_from_quaternion,
)


class StateExtractor:
    """Splits a state vector into (base pose, joint positions)."""

    floating_base = False
    base_dim = 0

    def __init__(self, state_dim: int, num_joints: int):
        self.state_dim = state_dim
        self.num_joints = num_joints

    def extract(self, x: Array, xp: Any = jnp) -> Tuple[BasePose, Array]:
        raise NotImplementedError

    def check(self, x: Array) -> None:
        """Raise DimensionMismatch unless `x` is a (state_dim,) vector."""
        if x.shape != (self.state_dim,):
            raise DimensionMismatch(
                f"Expected a state vector of shape ({self.state_dim},), "
                f"got {x.shape}"
            )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(state_dim={self.state_dim}, "
            f"num_joints={self.num_joints})"
        )


class FixedBaseExtractor(StateExtractor):
    """The whole leading block is joint positions; base is the world frame."""

    def extract(self, x: Array, xp: Any = jnp) -> Tuple[BasePose, Array]:
        return BasePose.identity(xp), x[:self.num_joints]


class EulerBaseExtractor(StateExtractor):
    """Floating base with orientation encoded as X-Y-Z Euler angles."""

    floating_base = True
    base_dim = 6

    def extract(self, x: Array, xp: Any = jnp) -> Tuple[BasePose, Array]:
        base = BasePose(
            position=x[3:6],
            rotation=rotation_matrix_from_euler_xyz(x[0:3], xp),
        )
        return base, x[6:6 + self.num_joints]


class QuaternionBaseExtractor(StateExtractor):
    """Floating base with orientation encoded as a [w, x, y, z] quaternion."""

    floating_base = True
    base_dim = 7

    def extract(self, x: Array, xp: Any = jnp) -> Tuple[BasePose, Array]:
        base = BasePose(
            position=x[4:7],
            rotation=rotation_matrix_from_quaternion(x[0:4], xp),
        )
        return base, x[7:7 + self.num_joints]


def expected_state_dim(num_joints: int, floating_base: bool) -> int:
    """State dimension of a robot with Euler (or no) base orientation."""
    return 2 * (6 * int(floating_base) + num_joints)


def make_state_extractor(
    state_dim: int,
    num_joints: int,
    floating_base: bool
) -> StateExtractor:
    """
    Choose the state layout for a robot, validating the dimension.

    The extra entry of a quaternion-encoded state only exists for a
    floating base, whose orientation it encodes. A fixed-base state has
    no base orientation, so ``2 * num_joints + 1`` is rejected for it even
    though the generic size rule ``2 * (6 * fb + n)`` (+1) would allow it.

    Args:
        state_dim: Declared length of the state vector.
        num_joints: Number of actuated joints of the robot.
        floating_base: True if the base pose is part of the state.

    Returns:
        The extractor for the matching layout.

    Raises:
        DimensionMismatch: If `state_dim` fits none of the layouts.
    """
    base = expected_state_dim(num_joints, floating_base)

    if floating_base and state_dim == base:
        return EulerBaseExtractor(state_dim, num_joints)
    if floating_base and state_dim == base + 1:
        return QuaternionBaseExtractor(state_dim, num_joints)
    if not floating_base and state_dim == base:
        return FixedBaseExtractor(state_dim, num_joints)

    allowed = f"{base} or {base + 1}" if floating_base else f"{base}"
    raise DimensionMismatch(
        f"State dimension {state_dim} does not match a "
        f"{'floating' if floating_base else 'fixed'}-base robot with "
        f"{num_joints} joints (expected {allowed})"
    )
