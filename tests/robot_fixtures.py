"""
Shared URDF fixtures for the test suite.

The "cartesian wrist" robot has three prismatic joints along X, Y, Z
followed by three revolute joints about Z, Y, X. With all joint origins
at zero, the tool sits at (q0, q1, q2) with rotation
Rz(q3) @ Ry(q4) @ Rx(q5), which makes expected values easy to write down.
"""

import tempfile
from functools import partial
from pathlib import Path

import numpy as np

from taskcost.kinematics import RobotModel

EE_LINKS = ["link_x", "link_y", "tool"]
NUM_JOINTS = 6


def _joint(name, jtype, parent, child, axis, lower=-3.0, upper=3.0, xyz="0 0 0"):
    return f"""
  <joint name="{name}" type="{jtype}">
    <parent link="{parent}"/>
    <child link="{child}"/>
    <origin xyz="{xyz}" rpy="0 0 0"/>
    <axis xyz="{axis}"/>
    <limit lower="{lower}" upper="{upper}" effort="10" velocity="1"/>
  </joint>"""


def cartesian_wrist_urdf() -> str:
    """URDF text of the cartesian wrist robot."""
    links = ["base_link", "link_x", "link_y", "link_z", "link_rz", "link_ry", "tool"]
    joints = [
        _joint("px", "prismatic", "base_link", "link_x", "1 0 0", -2.0, 2.0),
        _joint("py", "prismatic", "link_x", "link_y", "0 1 0", -2.0, 2.0),
        _joint("pz", "prismatic", "link_y", "link_z", "0 0 1", 0.0, 2.0),
        _joint("rz", "revolute", "link_z", "link_rz", "0 0 1"),
        _joint("ry", "revolute", "link_rz", "link_ry", "0 1 0"),
        _joint("rx", "revolute", "link_ry", "tool", "1 0 0"),
    ]
    body = "".join(f'\n  <link name="{name}"/>' for name in links)
    return f'<?xml version="1.0"?>\n<robot name="cartesian_wrist">{body}{"".join(joints)}\n</robot>\n'


def write_temp_file(content: str, suffix: str) -> str:
    """Write `content` to a named temporary file and return its path."""
    with tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False) as f:
        f.write(content)
        return f.name


def remove_file(path: str) -> None:
    Path(path).unlink()


def robot_factory(urdf_path: str):
    """Kinematics factory for the cartesian wrist robot."""
    return partial(RobotModel, urdf_path, end_effector_links=EE_LINKS)


def rot_x(a):
    c, s = np.cos(a), np.sin(a)
    return np.array([[1, 0, 0], [0, c, -s], [0, s, c]])


def rot_y(a):
    c, s = np.cos(a), np.sin(a)
    return np.array([[c, 0, s], [0, 1, 0], [-s, 0, c]])


def rot_z(a):
    c, s = np.cos(a), np.sin(a)
    return np.array([[c, -s, 0], [s, c, 0], [0, 0, 1]])


def quat_multiply(q1, q2):
    """Hamilton product of two [w, x, y, z] quaternions."""
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2
    ])


def quat_from_euler_xyz(roll, pitch, yaw):
    """Quaternion of Rx(roll) @ Ry(pitch) @ Rz(yaw)."""
    qx = np.array([np.cos(roll / 2), np.sin(roll / 2), 0.0, 0.0])
    qy = np.array([np.cos(pitch / 2), 0.0, np.sin(pitch / 2), 0.0])
    qz = np.array([np.cos(yaw / 2), 0.0, 0.0, np.sin(yaw / 2)])
    return quat_multiply(quat_multiply(qx, qy), qz)
