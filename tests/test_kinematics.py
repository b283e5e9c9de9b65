import json

import numpy as np
import pytest

from forcectl.databus import DataBus
from forcectl.kinematics import ArmKinematics, RobotModel, jlog6, log6
from forcectl.mathutil import eul2rot, rx3, ry3, rz3
from forcectl.pvt import MOTOR_NAMES

AXES = ["0 0 1", "0 1 0", "0 0 1", "0 1 0", "0 0 1", "0 1 0", "0 0 1"]


def urdf_text():
    parts = ['<robot name="arm">', '<link name="base"/>']
    parent = "base"
    for i, axis in enumerate(AXES, start=1):
        child = f"iiwa_link_{i}"
        parts.append(f'<link name="{child}"/>')
        parts.append(
            f'<joint name="iiwa_joint_{i}" type="revolute"><parent link="{parent}"/>'
            f'<child link="{child}"/><origin xyz="0 0 0.2" rpy="0 0 0"/>'
            f'<axis xyz="{axis}"/></joint>'
        )
        parent = child
    parts.append('<link name="iiwa_link_ee"/>')
    parts.append(
        '<joint name="ee" type="fixed"><parent link="iiwa_link_7"/>'
        '<child link="iiwa_link_ee"/></joint>'
    )
    parts.append("</robot>")
    return "".join(parts)


@pytest.fixture
def paths(tmp_path):
    urdf = tmp_path / "arm.urdf"
    urdf.write_text(urdf_text())
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({n: {"maxTorque": 100, "maxPos": 2, "minPos": -2} for n in MOTOR_NAMES}))
    return urdf, cfg


Q0 = np.array([0.3, 0.5, 0.2, -0.8, 0.1, 0.4, 0.2])


def test_log6_pure_rotation():
    assert log6(rz3(0.7), np.zeros(3)) == pytest.approx([0, 0, 0, 0, 0, 0.7])
    assert log6(np.eye(3), [1.0, 2.0, 3.0]) == pytest.approx([1, 2, 3, 0, 0, 0])


def test_jlog6_matches_finite_difference():
    rot, p = eul2rot(0.3, -0.4, 0.9), np.array([0.2, -0.1, 0.5])
    h = 1e-6
    base = log6(rot, p)
    numeric = np.zeros((6, 6))
    for i in range(3):
        e = np.zeros(3)
        e[i] = h
        numeric[:, i] = (log6(rot, p + rot @ e) - base) / h
    for i, r in enumerate((rx3(h), ry3(h), rz3(h))):
        numeric[:, 3 + i] = (log6(rot @ r, p) - base) / h
    assert np.allclose(jlog6(rot, p), numeric, atol=1e-4)


def test_model_ids_and_errors(paths):
    model = RobotModel.from_urdf(paths[0])
    assert model.nv == 7
    assert model.joint_id("iiwa_joint_1") == 1
    with pytest.raises(KeyError):
        model.joint_id("missing")
    with pytest.raises(ValueError):
        model.frame_placement([0.0], 0)


def test_jacobian_matches_finite_difference(paths):
    model = RobotModel.from_urdf(paths[0])
    jid = model.joint_id("iiwa_joint_7")
    jac = model.joint_jacobian(Q0, jid)
    r0, p0 = model.joint_placement(Q0, jid)
    h = 1e-6
    for k in range(7):
        dq = Q0.copy()
        dq[k] += h
        r1, p1 = model.joint_placement(dq, jid)
        assert np.allclose(r0.T @ (p1 - p0) / h, jac[:3, k], atol=1e-4)
        assert np.allclose(log6(r0.T @ r1, np.zeros(3))[3:] / h, jac[3:, k], atol=1e-4)


def test_ik_round_trip(paths):
    arm = ArmKinematics(*paths)
    rot, pos = arm.model.frame_placement(Q0, arm.ee_link)
    res = arm.compute_ik(rot, pos)
    assert res.status == 0
    r2, p2 = arm.model.frame_placement(res.joint_pose, arm.ee_link)
    assert np.allclose(p2, pos, atol=1e-3)
    assert np.allclose(r2, rot, atol=1e-3)


def test_config_and_bus(paths):
    arm = ArmKinematics(*paths)
    assert np.allclose(arm.motor_max_torque, 100.0)
    bus = DataBus(7)
    bus.tool0_rot_W = rz3(np.pi / 2)
    bus.dq = np.array([1.0, 0, 0, 0, 0, 1.0, 0])
    arm.read_bus(bus)
    assert arm.dq[:3] == pytest.approx([0, -1, 0])
    arm.write_bus(bus)
    assert bus.J_tool0.shape == (6, 7)