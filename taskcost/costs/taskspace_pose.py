"""
Cost term penalizing the deviation of an end-effector from a target pose.

The term combines a quadratic position error and a first-order rotation
error:

    cost = (p - p_ref)^T Q_pos (p - p_ref) + Q_rot * ||R_ref^T R - I||_F

The formula is written once against an array namespace and evaluated
either with NumPy (`evaluate`, returns a float) or with JAX
(`evaluate_differentiable`, returns a traceable array usable under
``jax.grad`` / ``jax.jit``). Both paths run the exact same code.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Union

import jax.numpy as jnp
import numpy as np
from jax import Array

from taskcost.costs import losses
from taskcost.costs.config import ConfigSource, TermParameters, load_term_parameters
from taskcost.costs.state import make_state_extractor
from taskcost.errors import DimensionMismatch
from taskcost.kinematics.base import KinematicsProvider
from taskcost.kinematics.utils import (
    normalize_quaternion,
    rotation_matrix_from_euler_xyz,
    rotation_matrix_from_quaternion,
)

logger = logging.getLogger(__name__)

KinematicsFactory = Callable[[], KinematicsProvider]


class TaskspacePoseTerm:
    """
    Task-space pose cost term for one end-effector.

    Parameters are fixed at construction and never change afterwards.
    The kinematics provider is created from `kinematics_factory`; every
    clone calls the factory again instead of sharing the provider, so
    clones can be handed to independent workers.

    Example:
        >>> factory = partial(RobotModel, "arm.urdf", end_effector_links=["hand"])
        >>> term = TaskspacePoseTerm(
        ...     factory, ee_index=0, q_pos=np.eye(3), q_rot=0.5,
        ...     position_des=[0.4, 0.0, 0.3], quat_des=[1, 0, 0, 0],
        ...     state_dim=14, control_dim=7, floating_base=False)
        >>> term.evaluate(x, u, 0.0)
    """

    def __init__(
        self,
        kinematics_factory: KinematicsFactory,
        ee_index: int,
        q_pos: Any,
        q_rot: float,
        position_des: Any,
        quat_des: Any,
        state_dim: int,
        control_dim: int,
        floating_base: bool,
        name: str = "TermTaskSpace"
    ):
        """
        Create the term with the target orientation given as a quaternion.

        Args:
            kinematics_factory: Zero-argument callable returning a provider.
            ee_index: End-effector index passed to the provider.
            q_pos: (3, 3) weighting matrix of the position error.
            q_rot: Non-negative weight of the rotation error.
            position_des: (3,) target position in world frame.
            quat_des: (4,) target orientation [w, x, y, z]; normalized here.
            state_dim: Length of the state vector.
            control_dim: Length of the control vector.
            floating_base: True if the base pose is part of the state.
            name: Human readable name of the term.

        Raises:
            DimensionMismatch: If `state_dim` does not fit the robot.
            ValueError: If a parameter has the wrong shape or value.
        """
        rotation_des = rotation_matrix_from_quaternion(normalize_quaternion(quat_des), np)
        params = TermParameters.create(ee_index, q_pos, q_rot, position_des, rotation_des)
        self._setup(kinematics_factory, params, state_dim, control_dim, floating_base, name)

    @classmethod
    def from_euler_xyz(
        cls,
        kinematics_factory: KinematicsFactory,
        ee_index: int,
        q_pos: Any,
        q_rot: float,
        position_des: Any,
        euler_xyz: Any,
        state_dim: int,
        control_dim: int,
        floating_base: bool,
        name: str = "TermTaskSpace"
    ) -> "TaskspacePoseTerm":
        """
        Create the term with the target orientation as X-Y-Z Euler angles.

        The angles are turned into ``Rx(roll) @ Ry(pitch) @ Rz(yaw)``, the
        same rotation-matrix representation the quaternion path uses.
        """
        euler_xyz = np.asarray(euler_xyz, dtype=np.float64)
        if euler_xyz.shape != (3,):
            raise ValueError(f"euler_xyz must have shape (3,), got {euler_xyz.shape}")
        rotation_des = rotation_matrix_from_euler_xyz(euler_xyz, np)
        params = TermParameters.create(ee_index, q_pos, q_rot, position_des, rotation_des)
        return cls.from_parameters(
            kinematics_factory, params, state_dim, control_dim, floating_base, name
        )

    @classmethod
    def from_config(
        cls,
        kinematics_factory: KinematicsFactory,
        config: Union[str, Path, ConfigSource],
        term_name: str,
        state_dim: int,
        control_dim: int,
        floating_base: bool,
        verbose: bool = False
    ) -> "TaskspacePoseTerm":
        """
        Create the term from section `term_name` of a YAML configuration.

        Raises:
            MissingField, MalformedField, MissingOrientation: See
                `load_term_parameters`.
            DimensionMismatch: If `state_dim` does not fit the robot.
        """
        if not isinstance(config, ConfigSource):
            config = ConfigSource.from_file(config)
        params = load_term_parameters(config, term_name, verbose=verbose)
        return cls.from_parameters(
            kinematics_factory, params, state_dim, control_dim, floating_base, term_name
        )

    @classmethod
    def from_parameters(
        cls,
        kinematics_factory: KinematicsFactory,
        params: TermParameters,
        state_dim: int,
        control_dim: int,
        floating_base: bool,
        name: str = "TermTaskSpace"
    ) -> "TaskspacePoseTerm":
        """Create the term from already validated parameters."""
        term = cls.__new__(cls)
        term._setup(kinematics_factory, params, state_dim, control_dim, floating_base, name)
        return term

    def _setup(
        self,
        kinematics_factory: KinematicsFactory,
        params: TermParameters,
        state_dim: int,
        control_dim: int,
        floating_base: bool,
        name: str
    ) -> None:
        # Validate everything before the first attribute is assigned
        kinematics = kinematics_factory()
        if params.ee_index >= kinematics.num_end_effectors:
            raise ValueError(
                f"End-effector index {params.ee_index} out of range, the "
                f"kinematics provide {kinematics.num_end_effectors} end-effector(s)"
            )
        if control_dim < 0:
            raise DimensionMismatch(f"Control dimension must be >= 0, got {control_dim}")
        extractor = make_state_extractor(state_dim, kinematics.num_joints, floating_base)

        self.name = name
        self._kinematics_factory = kinematics_factory
        self._kinematics = kinematics
        self._params = params
        self._extractor = extractor
        self._control_dim = control_dim
        logger.debug("Created %r", self)

    @property
    def parameters(self) -> TermParameters:
        return self._params

    @property
    def ee_index(self) -> int:
        return self._params.ee_index

    @property
    def q_pos(self) -> np.ndarray:
        return self._params.q_pos

    @property
    def q_rot(self) -> float:
        return self._params.q_rot

    @property
    def position_des(self) -> np.ndarray:
        return self._params.position_des

    @property
    def rotation_des(self) -> np.ndarray:
        return self._params.rotation_des

    @property
    def state_dim(self) -> int:
        return self._extractor.state_dim

    @property
    def control_dim(self) -> int:
        return self._control_dim

    @property
    def floating_base(self) -> bool:
        return self._extractor.floating_base

    @property
    def kinematics(self) -> KinematicsProvider:
        return self._kinematics

    def clone(self) -> "TaskspacePoseTerm":
        """
        Independent copy with equal parameters and a fresh kinematics provider.
        """
        params = TermParameters.create(
            self._params.ee_index,
            self._params.q_pos,
            self._params.q_rot,
            self._params.position_des,
            self._params.rotation_des,
        )
        return type(self).from_parameters(
            self._kinematics_factory,
            params,
            self.state_dim,
            self._control_dim,
            self.floating_base,
            self.name,
        )

    def __copy__(self) -> "TaskspacePoseTerm":
        return self.clone()

    def __deepcopy__(self, memo: dict) -> "TaskspacePoseTerm":
        return self.clone()

    def _check_control(self, u: Any) -> None:
        if np.shape(u) != (self._control_dim,):
            raise DimensionMismatch(
                f"Expected a control vector of shape ({self._control_dim},), "
                f"got {np.shape(u)}"
            )

    def _eval_local(self, x: Array, u: Array, t: Any, xp: Any) -> Array:
        """The cost formula; `u` and `t` are unused."""
        base_pose, joint_positions = self._extractor.extract(x, xp)

        ee = self._params.ee_index
        position, rotation = self._kinematics.world_pose(ee, base_pose, joint_positions, xp)

        pos_cost = losses.weighted_position_cost(
            position, self._params.position_des, self._params.q_pos, xp
        )
        rot_cost = losses.rotation_cost(
            rotation, self._params.rotation_des, self._params.q_rot, xp
        )
        return pos_cost + rot_cost

    def evaluate(self, x: Any, u: Any, t: float) -> float:
        """
        Evaluate the cost with plain NumPy floats.

        Args:
            x: State vector (state_dim,).
            u: Control vector (control_dim,), unused.
            t: Time, unused.

        Returns:
            The scalar cost.
        """
        x = np.asarray(x, dtype=np.float64)
        self._extractor.check(x)
        self._check_control(u)
        return float(self._eval_local(x, u, t, np))

    def evaluate_differentiable(self, x: Any, u: Any, t: Any) -> Array:
        """
        Evaluate the cost with JAX so it can be differentiated or jitted.

        Args:
            x: State vector (state_dim,), may be a JAX tracer.
            u: Control vector (control_dim,), unused.
            t: Time, unused.

        Returns:
            The scalar cost as a 0-d JAX array.
        """
        x = jnp.asarray(x)
        self._extractor.check(x)
        self._check_control(u)
        return self._eval_local(x, u, t, jnp)

    def __repr__(self) -> str:
        return (
            f"TaskspacePoseTerm(name='{self.name}', ee_index={self.ee_index}, "
            f"state_dim={self.state_dim}, control_dim={self._control_dim}, "
            f"floating_base={self.floating_base})"
        )
