"""
Robot model abstraction over URDF files.

This module provides the RobotModel class which:
1. Parses a URDF file to extract the chains to one or more end-effectors
2. Computes end-effector positions and rotations in the world frame
3. Runs the same forward kinematics on NumPy values and on JAX tracers

The implementation uses urdf-parser-py for URDF parsing. Forward
kinematics is written against an array namespace so that cost terms can
evaluate it with plain floats or differentiate through it with JAX.
"""

from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

import jax.numpy as jnp
import numpy as np
from jax import Array
from urdf_parser_py.urdf import URDF, Joint

from taskcost.kinematics.utils import (
    BasePose,
    rotation_about_axis,
    rotation_x,
    rotation_y,
    rotation_z,
)

ACTUATED_JOINT_TYPES = ("revolute", "prismatic", "continuous")


class _ChainStep(NamedTuple):
    """Precomputed constant data for one joint of a kinematic chain."""
    origin_rotation: np.ndarray  # (3, 3)
    origin_translation: np.ndarray  # (3,)
    joint_type: str
    axis: np.ndarray  # (3,) unit axis
    joint_index: Optional[int]  # index into the joint vector, None if fixed


class RobotModel:
    """
    A stateless kinematics provider built from a URDF file.

    Each entry of `end_effector_links` defines one end-effector; cost terms
    select it by its index in that list. The joint vector contains every
    actuated joint that lies on at least one of those chains, in URDF
    declaration order.

    Attributes:
        name: The robot's name from the URDF.
        num_joints: Number of actuated joints.
        joint_names: List of joint names in joint-vector order.
        end_effector_links: Names of the end-effector links.

    Example:
        >>> robot = RobotModel("robot.urdf", end_effector_links=["hand"])
        >>> base = BasePose.identity(np)
        >>> robot.world_position(0, base, np.zeros(robot.num_joints), xp=np)
    """

    def __init__(
        self,
        urdf_path: str,
        end_effector_links: Optional[Sequence[str]] = None,
        base_link: Optional[str] = None
    ):
        """
        Initialize the robot model from a URDF file.

        Args:
            urdf_path: Path to the URDF file.
            end_effector_links: Names of the end-effector links. If None,
                                uses the last link of the URDF.
            base_link: Name of the base link. If None, uses the URDF root.
        """
        self._urdf_path = Path(urdf_path)
        self._urdf = URDF.from_xml_file(str(self._urdf_path))
        self.name = self._urdf.name

        self._base_link = base_link or self._find_root_link()
        if end_effector_links is None:
            end_effector_links = [self._find_last_link()]
        self.end_effector_links = list(end_effector_links)
        if not self.end_effector_links:
            raise ValueError("At least one end-effector link is required")

        chains = [self._build_kinematic_chain(link) for link in self.end_effector_links]

        # Joint vector: actuated joints on any chain, in URDF order
        on_chain = {j.name for chain in chains for j in chain}
        self._actuated_joints = [
            j for j in self._urdf.joints
            if j.type in ACTUATED_JOINT_TYPES and j.name in on_chain
        ]
        self.joint_names = [j.name for j in self._actuated_joints]
        self.num_joints = len(self._actuated_joints)

        # Explicit `is None` checks: a limit of 0.0 is a valid limit
        lower_limits = []
        upper_limits = []
        for joint in self._actuated_joints:
            lower, upper = -np.pi, np.pi
            if joint.limit is not None and joint.type != "continuous":
                if joint.limit.lower is not None:
                    lower = joint.limit.lower
                if joint.limit.upper is not None:
                    upper = joint.limit.upper
            lower_limits.append(lower)
            upper_limits.append(upper)
        self._lower_limits = np.array(lower_limits, dtype=np.float64)
        self._upper_limits = np.array(upper_limits, dtype=np.float64)

        index_of = {name: i for i, name in enumerate(self.joint_names)}
        self._chains = [
            [self._make_step(joint, index_of) for joint in chain]
            for chain in chains
        ]

    @property
    def num_end_effectors(self) -> int:
        """Number of end-effectors this model can be queried for."""
        return len(self._chains)

    @property
    def joint_limits(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return (lower_limits, upper_limits) as arrays."""
        return (self._lower_limits, self._upper_limits)

    def _find_root_link(self) -> str:
        """Find the root link of the URDF (link with no parent)."""
        child_links = {j.child for j in self._urdf.joints}
        for link in self._urdf.links:
            if link.name not in child_links:
                return link.name
        return self._urdf.links[0].name

    def _find_last_link(self) -> str:
        """Find a leaf link (link with no children)."""
        parent_links = {j.parent for j in self._urdf.joints}
        for link in self._urdf.links:
            if link.name not in parent_links:
                return link.name
        return self._urdf.links[-1].name

    def _build_kinematic_chain(self, end_effector_link: str) -> List[Joint]:
        """
        Build the kinematic chain from base to `end_effector_link`.

        Returns a list of joints in order from base to end-effector.
        """
        joint_by_child: Dict[str, Joint] = {}
        for joint in self._urdf.joints:
            joint_by_child[joint.child] = joint

        chain = []
        current_link = end_effector_link

        while current_link != self._base_link:
            if current_link not in joint_by_child:
                raise ValueError(
                    f"Cannot find path from {self._base_link} to "
                    f"{end_effector_link}. Broken at {current_link}."
                )
            joint = joint_by_child[current_link]
            chain.append(joint)
            current_link = joint.parent

        chain.reverse()
        return chain

    @staticmethod
    def _make_step(joint: Joint, index_of: Dict[str, int]) -> _ChainStep:
        """Precompute the constant origin transform and axis of a joint."""
        origin = joint.origin
        xyz = [0.0, 0.0, 0.0]
        rpy = [0.0, 0.0, 0.0]
        if origin is not None:
            if origin.xyz is not None:
                xyz = origin.xyz
            if origin.rpy is not None:
                rpy = origin.rpy

        # URDF rpy: fixed-axis roll, pitch, yaw
        roll, pitch, yaw = rpy
        origin_rotation = (
            rotation_z(yaw, np) @ rotation_y(pitch, np) @ rotation_x(roll, np)
        )

        axis = np.array(joint.axis if joint.axis is not None else [0, 0, 1],
                        dtype=np.float64)
        axis = axis / np.linalg.norm(axis)

        return _ChainStep(
            origin_rotation=origin_rotation,
            origin_translation=np.array(xyz, dtype=np.float64),
            joint_type=joint.type,
            axis=axis,
            joint_index=index_of.get(joint.name),
        )

    def _check_index(self, ee_index: int) -> None:
        if not 0 <= ee_index < len(self._chains):
            raise IndexError(
                f"End-effector index {ee_index} out of range for "
                f"{len(self._chains)} end-effector(s) of '{self.name}'"
            )

    def forward_kinematics(
        self,
        ee_index: int,
        joint_positions: Array,
        xp: Any = jnp
    ) -> Tuple[Array, Array]:
        """
        Compute an end-effector pose in the base frame.

        Args:
            ee_index: Index into `end_effector_links`.
            joint_positions: Array of shape (num_joints,) with joint values.
            xp: Array namespace (``numpy`` or ``jax.numpy``).

        Returns:
            Tuple (position (3,), rotation (3, 3)) in the base frame.
        """
        self._check_index(ee_index)

        rotation = xp.eye(3)
        position = xp.zeros(3)

        for step in self._chains[ee_index]:
            # Fixed origin offset of the joint
            position = position + rotation @ step.origin_translation
            rotation = rotation @ step.origin_rotation

            if step.joint_index is None:
                continue
            q = joint_positions[step.joint_index]
            if step.joint_type in ("revolute", "continuous"):
                rotation = rotation @ rotation_about_axis(step.axis, q, xp)
            elif step.joint_type == "prismatic":
                position = position + rotation @ (step.axis * q)

        return position, rotation

    def world_pose(
        self,
        ee_index: int,
        base_pose: BasePose,
        joint_positions: Array,
        xp: Any = jnp
    ) -> Tuple[Array, Array]:
        """
        End-effector pose in the world frame from a single chain walk.

        Returns:
            Tuple (position (3,), rotation (3, 3)) in the world frame.
        """
        position, rotation = self.forward_kinematics(ee_index, joint_positions, xp)
        return base_pose.transform_point(position), base_pose.rotation @ rotation

    def world_position(
        self,
        ee_index: int,
        base_pose: BasePose,
        joint_positions: Array,
        xp: Any = jnp
    ) -> Array:
        """End-effector position in the world frame, shape (3,)."""
        return self.world_pose(ee_index, base_pose, joint_positions, xp)[0]

    def world_rotation(
        self,
        ee_index: int,
        base_pose: BasePose,
        joint_positions: Array,
        xp: Any = jnp
    ) -> Array:
        """End-effector rotation in the world frame, shape (3, 3)."""
        return self.world_pose(ee_index, base_pose, joint_positions, xp)[1]

    def __repr__(self) -> str:
        return (
            f"RobotModel(name='{self.name}', "
            f"joints={self.num_joints}, "
            f"end_effectors={self.end_effector_links})"
        )
