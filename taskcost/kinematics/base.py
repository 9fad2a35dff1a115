"""Interface every kinematics provider used by cost terms implements."""

from typing import Any, Protocol, Tuple

from jax import Array

from taskcost.kinematics.utils import BasePose


class KinematicsProvider(Protocol):
    """
    Stateless forward kinematics queried by end-effector index.

    Implementations must accept an array namespace `xp` and build their
    results with it, so the same call works on NumPy values and on JAX
    tracers. Cost terms create a fresh provider for every clone.
    """

    num_joints: int

    @property
    def num_end_effectors(self) -> int: ...

    def world_position(
        self, ee_index: int, base_pose: BasePose, joint_positions: Array, xp: Any
    ) -> Array: ...

    def world_rotation(
        self, ee_index: int, base_pose: BasePose, joint_positions: Array, xp: Any
    ) -> Array: ...

    def world_pose(
        self, ee_index: int, base_pose: BasePose, joint_positions: Array, xp: Any
    ) -> Tuple[Array, Array]:
        """(world_position, world_rotation) computed in one pass."""
        ...
