#!/usr/bin/env python3
"""
Test suite for the URDF-backed kinematics provider.

Checks world-frame end-effector poses against closed-form values of the
cartesian wrist robot, with and without a floating base, and that NumPy
and JAX evaluation agree.
"""

import sys
import unittest
from pathlib import Path

# Add repo root and this directory to path
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT))
sys.path.insert(0, str(Path(__file__).parent))

import jax.numpy as jnp
import numpy as np

from taskcost.kinematics import BasePose, RobotModel
from taskcost.kinematics.utils import (
    normalize_quaternion,
    rotation_matrix_from_euler_xyz,
    rotation_matrix_from_quaternion,
)
from robot_fixtures import (
    EE_LINKS,
    NUM_JOINTS,
    cartesian_wrist_urdf,
    quat_from_euler_xyz,
    remove_file,
    rot_x,
    rot_y,
    rot_z,
    write_temp_file,
)


class TestRotations(unittest.TestCase):
    """Rotation helpers used by both the kinematics and the cost terms."""

    def test_euler_xyz_composition_order(self):
        angles = np.array([0.3, -0.7, 1.1])
        expected = rot_x(0.3) @ rot_y(-0.7) @ rot_z(1.1)
        np.testing.assert_allclose(
            rotation_matrix_from_euler_xyz(angles, np), expected, atol=1e-12)

    def test_quaternion_matches_euler(self):
        q = quat_from_euler_xyz(0.3, -0.7, 1.1)
        np.testing.assert_allclose(
            rotation_matrix_from_quaternion(q, np),
            rotation_matrix_from_euler_xyz(np.array([0.3, -0.7, 1.1]), np),
            atol=1e-12)

    def test_quaternion_result_is_orthonormal(self):
        R = rotation_matrix_from_quaternion(np.array([3.0, -1.0, 0.5, 2.0]), np)
        np.testing.assert_allclose(R.T @ R, np.eye(3), atol=1e-12)
        self.assertAlmostEqual(np.linalg.det(R), 1.0, places=12)

    def test_normalize_zero_quaternion_raises(self):
        with self.assertRaises(ValueError):
            normalize_quaternion([0.0, 0.0, 0.0, 0.0])

    def test_jax_and_numpy_agree(self):
        angles = np.array([0.3, -0.7, 1.1])
        np.testing.assert_allclose(
            np.asarray(rotation_matrix_from_euler_xyz(jnp.asarray(angles), jnp)),
            rotation_matrix_from_euler_xyz(angles, np),
            atol=1e-5)


class TestRobotModel(unittest.TestCase):
    """Forward kinematics of the cartesian wrist robot."""

    @classmethod
    def setUpClass(cls):
        cls.urdf_path = write_temp_file(cartesian_wrist_urdf(), '.urdf')
        cls.robot = RobotModel(cls.urdf_path, end_effector_links=EE_LINKS)

    @classmethod
    def tearDownClass(cls):
        remove_file(cls.urdf_path)

    def test_structure(self):
        self.assertEqual(self.robot.num_joints, NUM_JOINTS)
        self.assertEqual(self.robot.num_end_effectors, 3)
        self.assertEqual(self.robot.joint_names, ["px", "py", "pz", "rz", "ry", "rx"])

    def test_default_end_effector_is_leaf(self):
        robot = RobotModel(self.urdf_path)
        self.assertEqual(robot.end_effector_links, ["tool"])
        self.assertEqual(robot.num_joints, NUM_JOINTS)

    def test_zero_limit_is_kept(self):
        lower, upper = self.robot.joint_limits
        self.assertAlmostEqual(float(lower[2]), 0.0, places=12,
            msg=f"Lower limit should be 0.0, got {float(lower[2])}")
        self.assertAlmostEqual(float(upper[2]), 2.0, places=12)

    def test_tool_pose_fixed_base(self):
        q = np.array([0.1, -0.2, 0.8, 0.4, -0.3, 0.9])
        base = BasePose.identity(np)
        p = self.robot.world_position(2, base, q, xp=np)
        R = self.robot.world_rotation(2, base, q, xp=np)
        np.testing.assert_allclose(p, [0.1, -0.2, 0.8], atol=1e-12)
        np.testing.assert_allclose(R, rot_z(0.4) @ rot_y(-0.3) @ rot_x(0.9), atol=1e-12)

    def test_intermediate_end_effector(self):
        q = np.array([0.1, -0.2, 0.8, 0.4, -0.3, 0.9])
        base = BasePose.identity(np)
        np.testing.assert_allclose(
            self.robot.world_position(0, base, q, xp=np), [0.1, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(
            self.robot.world_rotation(1, base, q, xp=np), np.eye(3), atol=1e-12)

    def test_base_pose_is_applied(self):
        q = np.array([1.0, 0.0, 0.5, 0.0, 0.0, 0.0])
        base = BasePose(position=np.array([0.0, 0.0, 0.5]), rotation=rot_z(np.pi / 2))
        p = self.robot.world_position(2, base, q, xp=np)
        R = self.robot.world_rotation(2, base, q, xp=np)
        np.testing.assert_allclose(p, [0.0, 1.0, 1.0], atol=1e-12)
        np.testing.assert_allclose(R, rot_z(np.pi / 2), atol=1e-12)

    def test_world_pose_matches_separate_queries(self):
        q = np.array([0.1, -0.2, 0.8, 0.4, -0.3, 0.9])
        base = BasePose(position=np.array([0.2, 0.0, 0.5]), rotation=rot_x(0.3))
        p, R = self.robot.world_pose(2, base, q, xp=np)
        np.testing.assert_allclose(p, self.robot.world_position(2, base, q, xp=np), atol=1e-12)
        np.testing.assert_allclose(R, self.robot.world_rotation(2, base, q, xp=np), atol=1e-12)

    def test_jax_matches_numpy(self):
        q = np.array([0.1, -0.2, 0.8, 0.4, -0.3, 0.9])
        p_np = self.robot.world_position(2, BasePose.identity(np), q, xp=np)
        R_np = self.robot.world_rotation(2, BasePose.identity(np), q, xp=np)
        p_jx = self.robot.world_position(2, BasePose.identity(jnp), jnp.asarray(q), xp=jnp)
        R_jx = self.robot.world_rotation(2, BasePose.identity(jnp), jnp.asarray(q), xp=jnp)
        np.testing.assert_allclose(np.asarray(p_jx), p_np, atol=1e-5)
        np.testing.assert_allclose(np.asarray(R_jx), R_np, atol=1e-5)

    def test_unknown_end_effector_index(self):
        with self.assertRaises(IndexError):
            self.robot.world_position(3, BasePose.identity(np), np.zeros(NUM_JOINTS), xp=np)

    def test_broken_chain(self):
        with self.assertRaises(ValueError):
            RobotModel(self.urdf_path, end_effector_links=["tool"], base_link="link_ry_missing")


if __name__ == "__main__":
    unittest.main(verbosity=2)
