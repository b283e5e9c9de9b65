import json

import pytest

from forcectl.databus import DataBus
from forcectl.lowpass import LowPassFilter
from forcectl.pvt import MOTOR_NAMES, JointConfig, PvtController, load_joint_config

TS = 0.001


def make(kp=100.0, kd=0.0, max_torque=1000.0, fc=50.0):
    cfg = {n: JointConfig(kp=kp, kd=kd, max_torque=max_torque, lpf_cutoff=fc) for n in MOTOR_NAMES}
    return PvtController(TS, cfg)


def bus_with(pos_des, tor_des=0.0):
    bus = DataBus(7)
    bus.motors_pos_des = [pos_des] * 7
    bus.motors_tor_des = [tor_des] * 7
    return bus


def alpha(fc):
    return LowPassFilter(fc, TS).alpha


def test_plain_pd_is_filtered():
    ctl = make()
    ctl.read_bus(bus_with(0.5))
    out = ctl.compute()
    assert out[0] == pytest.approx(alpha(50.0) * 100.0 * 0.5)


def test_delta_limit_caps_position_step():
    ctl = make()
    ctl.read_bus(bus_with(1.0))
    out = ctl.compute(0.1)
    assert out[3] == pytest.approx(alpha(50.0) * 100.0 * 0.1)
    assert ctl.motor_pos_des_old[3] == pytest.approx(0.1)


def test_saturation_keeps_sign():
    ctl = make(kp=1e9, max_torque=20.0)
    ctl.read_bus(bus_with(-1.0))
    assert ctl.compute() == [-20.0] * 7


def test_disable_pv_leaves_feedforward():
    ctl = make()
    ctl.disable_pv()
    ctl.read_bus(bus_with(1.0, tor_des=3.0))
    assert ctl.compute() == pytest.approx([3.0] * 7)
    ctl.enable_pv(2)
    out = ctl.compute()
    assert out[2] > 3.0 and out[1] == pytest.approx(3.0)


def test_write_bus():
    ctl = make()
    ctl.read_bus(bus_with(0.2))
    ctl.compute()
    bus = DataBus(7)
    ctl.write_bus(bus)
    assert bus.motors_tor_out == ctl.motor_tor_out == bus.motors_tor_cur


def test_set_joint_pd():
    ctl = make()
    ctl.set_joint_pd(5.0, 1.0, "joint4")
    assert ctl.pvt_kp[3] == 5.0 and ctl.pvt_kd[3] == 1.0
    with pytest.raises(KeyError):
        ctl.set_joint_pd(1.0, 1.0, "nope")


def test_load_config(tmp_path):
    data = {n: {"kp": 10, "kd": 2, "maxTorque": 50, "maxSpeed": 3,
                "maxPos": 2, "minPos": -2, "PVT_LPF_Fc": 20} for n in MOTOR_NAMES}
    del data["joint7"]["kd"]
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(data))
    cfg = load_joint_config(path)
    assert cfg["joint1"] == JointConfig(10, 2, 50, 3, 2, -2, 20)
    assert cfg["joint7"].kd == 0.0
    ctl = PvtController.from_json(TS, path)
    assert ctl.max_tor == [50.0] * 7