"""Serial-arm kinematics from URDF and damped least-squares inverse kinematics."""

from __future__ import annotations

import json
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .mathutil import cross_product_matrix, eul2rot

MOTOR_NAMES = ("joint1", "joint2", "joint3", "joint4", "joint5", "joint6", "joint7")
_MOVABLE = ("revolute", "continuous", "prismatic")


def _vee(m: np.ndarray) -> np.ndarray:
    return np.array([m[2, 1], m[0, 2], m[1, 0]])


def _log3(rot: np.ndarray) -> np.ndarray:
    diag_sum = float(rot[0, 0] + rot[1, 1] + rot[2, 2])
    cos_t = max(-1.0, min(1.0, (diag_sum - 1.0) / 2.0))
    theta = math.acos(cos_t)
    skew = _vee(rot - rot.T)
    if theta < 1e-8:
        return 0.5 * skew
    if math.pi - theta < 1e-6:
        diag = np.clip((np.diag(rot) + 1.0) / 2.0, 0.0, None)
        axis = np.sqrt(diag)
        k = int(np.argmax(axis))
        for i in range(3):
            if i != k and rot[k, i] + rot[i, k] < 0:
                axis[i] = -axis[i]
        return theta * axis / np.linalg.norm(axis)
    return theta / (2.0 * math.sin(theta)) * skew


def log6(rotation, translation) -> np.ndarray:
    """Twist ``(v, w)`` whose exponential is the given rigid transform."""
    rot = np.asarray(rotation, dtype=float)
    p = np.asarray(translation, dtype=float).reshape(3)
    w = _log3(rot)
    theta = float(np.linalg.norm(w))
    wx = cross_product_matrix(w)
    if theta < 1e-6:
        coef = 1.0 / 12.0
    else:
        coef = (1.0 - theta * math.sin(theta) / (2.0 * (1.0 - math.cos(theta)))) / theta**2
    v_inv = np.eye(3) - 0.5 * wx + coef * (wx @ wx)
    return np.concatenate([v_inv @ p, w])


def _jr3(w: np.ndarray) -> np.ndarray:
    theta = float(np.linalg.norm(w))
    wx = cross_product_matrix(w)
    if theta < 1e-6:
        return np.eye(3) - 0.5 * wx + (wx @ wx) / 6.0
    return (
        np.eye(3)
        - (1 - math.cos(theta)) / theta**2 * wx
        + (theta - math.sin(theta)) / theta**3 * (wx @ wx)
    )


def _ql(v: np.ndarray, w: np.ndarray) -> np.ndarray:
    V = cross_product_matrix(v)
    W = cross_product_matrix(w)
    theta = float(np.linalg.norm(w))
    if theta < 1e-4:
        return 0.5 * V + (W @ V + V @ W + W @ V @ W) / 6.0
    t2, t3, t4, t5 = theta**2, theta**3, theta**4, theta**5
    s, c = math.sin(theta), math.cos(theta)
    a = (theta - s) / t3
    b = (1 - t2 / 2 - c) / t4
    d = 0.5 * (b - 3 * (theta - s - t3 / 6) / t5)
    return (
        0.5 * V
        + a * (W @ V + V @ W + W @ V @ W)
        + b * (W @ W @ V + V @ W @ W - 3 * W @ V @ W)
        - d * (W @ V @ W @ W + W @ W @ V @ W)
    )


def jlog6(rotation, translation) -> np.ndarray:
    """Derivative of :func:`log6` under a right (local) perturbation."""
    xi = log6(rotation, translation)
    v, w = xi[:3], xi[3:]
    jr = np.zeros((6, 6))
    jr3 = _jr3(w)
    jr[:3, :3] = jr3
    jr[3:, 3:] = jr3
    jr[:3, 3:] = _ql(-v, -w)
    return np.linalg.inv(jr)


def _origin(element) -> tuple[np.ndarray, np.ndarray]:
    if element is None:
        return np.eye(3), np.zeros(3)
    xyz = [float(x) for x in element.get("xyz", "0 0 0").split()]
    rpy = [float(x) for x in element.get("rpy", "0 0 0").split()]
    return eul2rot(*rpy), np.array(xyz)


@dataclass
class UrdfJoint:
    """One joint of a URDF tree."""

    name: str
    kind: str
    parent: str
    child: str
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    axis: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))

    @property
    def movable(self) -> bool:
        return self.kind in _MOVABLE


class RobotModel:
    """Tree of links and joints; joint ids start at 1 (0 is the world)."""

    def __init__(self, joints, root):
        self.root = root
        children: dict[str, list[UrdfJoint]] = {}
        for j in joints:
            children.setdefault(j.parent, []).append(j)
        self._order: list[UrdfJoint] = []
        self.frames: list[str] = [root]
        self.joints: list[UrdfJoint] = []
        self._support: dict[str, list[int]] = {root: []}
        stack = [root]
        while stack:
            link = stack.pop()
            for j in children.get(link, []):
                self._order.append(j)
                support = list(self._support[link])
                if j.movable:
                    self.joints.append(j)
                    support.append(len(self.joints))
                self._support[j.child] = support
                self.frames.append(j.child)
            stack.extend(reversed([j.child for j in children.get(link, [])]))
        self.nv = len(self.joints)
        self.nq = self.nv

    @classmethod
    def from_urdf(cls, path) -> "RobotModel":
        """Parse a URDF file."""
        tree = ET.parse(Path(path))
        joints = []
        for el in tree.getroot().findall("joint"):
            rot, trans = _origin(el.find("origin"))
            axis_el = el.find("axis")
            axis = (
                np.array([float(x) for x in axis_el.get("xyz").split()])
                if axis_el is not None
                else np.array([1.0, 0.0, 0.0])
            )
            joints.append(
                UrdfJoint(
                    name=el.get("name"),
                    kind=el.get("type"),
                    parent=el.find("parent").get("link"),
                    child=el.find("child").get("link"),
                    rotation=rot,
                    translation=trans,
                    axis=axis,
                )
            )
        links = [el.get("name") for el in tree.getroot().findall("link")]
        child_links = {j.child for j in joints}
        roots = [name for name in links if name not in child_links]
        if not roots:
            raise ValueError("URDF has no root link")
        return cls(joints, roots[0])

    def joint_id(self, name) -> int:
        for idx, j in enumerate(self.joints, start=1):
            if j.name == name:
                return idx
        raise KeyError(f"joint {name!r} not found")

    def frame_id(self, name) -> int:
        try:
            return self.frames.index(name)
        except ValueError:
            raise KeyError(f"frame {name!r} not found") from None

    def _poses(self, q) -> dict[str, tuple[np.ndarray, np.ndarray]]:
        q = np.asarray(q, dtype=float).reshape(-1)
        if q.size != self.nq:
            raise ValueError(f"expected {self.nq} joint values, got {q.size}")
        poses = {self.root: (np.eye(3), np.zeros(3))}
        index = {j.name: i for i, j in enumerate(self.joints)}
        for j in self._order:
            r_p, p_p = poses[j.parent]
            r = r_p @ j.rotation
            p = p_p + r_p @ j.translation
            if j.movable:
                value = q[index[j.name]]
                if j.kind == "prismatic":
                    p = p + r @ (j.axis * value)
                else:
                    r = r @ _axis_rotation(j.axis, value)
            poses[j.child] = (r, p)
        return poses

    def frame_placement(self, q, frame) -> tuple[np.ndarray, np.ndarray]:
        """World rotation and position of a frame."""
        return self._poses(q)[self.frames[frame]]

    def joint_placement(self, q, joint) -> tuple[np.ndarray, np.ndarray]:
        """World rotation and position of a joint's frame."""
        return self._poses(q)[self.joints[joint - 1].child]

    def joint_jacobian(self, q, joint) -> np.ndarray:
        """6 x nv Jacobian ``(v, w)`` of a joint, expressed in its own frame."""
        poses = self._poses(q)
        target = self.joints[joint - 1].child
        r_j, p_j = poses[target]
        jac = np.zeros((6, self.nv))
        for k in self._support[target]:
            jk = self.joints[k - 1]
            r_k, p_k = poses[jk.child]
            axis = r_k @ jk.axis
            if jk.kind == "prismatic":
                lin, ang = axis, np.zeros(3)
            else:
                lin, ang = np.cross(axis, p_j - p_k), axis
            jac[:3, k - 1] = r_j.T @ lin
            jac[3:, k - 1] = r_j.T @ ang
        return jac


def _axis_rotation(axis: np.ndarray, angle: float) -> np.ndarray:
    n = axis / np.linalg.norm(axis)
    k = cross_product_matrix(n)
    return np.eye(3) + math.sin(angle) * k + (1 - math.cos(angle)) * (k @ k)


@dataclass
class IkResult:
    """Outcome of an IK solve: status 0 on success, -1 otherwise."""

    status: int
    itr: int
    err: np.ndarray
    joint_pose: np.ndarray


class ArmKinematics:
    """Kinematic quantities and IK of a seven-joint arm."""

    JOINT_NAMES = tuple(f"iiwa_joint_{i}" for i in range(1, 8))
    LINK_NAMES = tuple(f"iiwa_link_{i}" for i in range(1, 8))
    EE_LINK = "iiwa_link_ee"

    def __init__(self, urdf_path, config_path):
        self.model = RobotModel.from_urdf(urdf_path)
        self.model_nv = self.model.nv
        nv = self.model_nv
        self.joint_ids = [self.model.joint_id(n) for n in self.JOINT_NAMES]
        self.link_ids = [self.model.frame_id(n) for n in self.LINK_NAMES]
        self.ee_link = self.model.frame_id(self.EE_LINK)

        self.J_tool0 = np.zeros((6, 7))
        self.dJ_tool0 = np.zeros((6, 7))
        self.q = np.zeros(nv)
        self.dq = np.zeros(nv)
        self.ddq = np.zeros(nv)
        self.tool0_pos_b = np.zeros(3)
        self.tool_R = np.zeros((3, 3))
        self.dyn_M = np.zeros((nv, nv))
        self.dyn_M_inv = np.zeros((nv, nv))
        self.dyn_C = np.zeros((nv, nv))
        self.dyn_G = np.zeros((nv, nv))
        self.dyn_Non = np.zeros(0)

        with Path(config_path).open("rb") as handle:
            root = json.load(handle)

        def read(name, key):
            value = (root.get(name) or {}).get(key)
            return 0.0 if value is None else float(value)

        self.motor_max_torque = np.array([read(n, "maxTorque") for n in MOTOR_NAMES])
        self.motor_max_pos = np.array([read(n, "maxPos") for n in MOTOR_NAMES])
        self.motor_min_pos = np.array([read(n, "minPos") for n in MOTOR_NAMES])
        self.motor_reach_limit = [False] * len(MOTOR_NAMES)
        self.tau_joint_old = np.zeros(len(MOTOR_NAMES))

    def read_bus(self, bus) -> None:
        """Take joint state from the bus; world velocities become body velocities."""
        self.q = np.array(bus.q, dtype=float)
        dq = np.array(bus.dq, dtype=float)
        rot_t = np.asarray(bus.tool0_rot_W, dtype=float).T
        dq[0:3] = rot_t @ dq[0:3]
        dq[3:6] = rot_t @ dq[3:6]
        self.dq = dq
        self.ddq = np.array(bus.ddq, dtype=float)

    def write_bus(self, bus) -> None:
        """Publish kinematic and dynamic quantities."""
        bus.J_tool0 = self.J_tool0.copy()
        bus.dJ_tool0 = self.dJ_tool0.copy()
        bus.tool0_pos_b = self.tool0_pos_b.copy()
        bus.tool_R = self.tool_R.copy()
        bus.dyn_M = self.dyn_M.copy()
        bus.dyn_M_inv = self.dyn_M_inv.copy()
        bus.dyn_C = self.dyn_C.copy()
        bus.dyn_G = self.dyn_G.copy()
        bus.dyn_Non = self.dyn_Non.copy()

    def compute_ik(self, rotation, position) -> IkResult:
        """Solve for joint angles placing the end effector at the given pose."""
        eps, it_max, step, damp = 1e-4, 100, 0.7, 1e-5
        r_des = np.asarray(rotation, dtype=float)
        p_des = np.asarray(position, dtype=float).reshape(3)
        q = np.zeros(self.model.nq)
        joint7 = self.joint_ids[6]
        itr = 0
        success = False
        while True:
            r_cur, p_cur = self.model.frame_placement(q, self.ee_link)
            r_err = r_cur.T @ r_des
            p_err = r_cur.T @ (p_des - p_cur)
            err = log6(r_err, p_err)
            if np.linalg.norm(err) <= eps:
                success = True
                break
            if itr >= it_max:
                break
            jac = self.model.joint_jacobian(q, joint7)
            jl = jlog6(r_err.T, -r_err.T @ p_err)
            jac = -jl @ jac
            jjt = jac @ jac.T + damp * np.eye(6)
            q_delta = -jac.T @ np.linalg.solve(jjt, err)
            q = q + q_delta * step
            itr += 1
        return IkResult(status=0 if success else -1, itr=itr, err=err, joint_pose=q)