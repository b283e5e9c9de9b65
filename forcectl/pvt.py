"""Joint-space position/velocity/torque (PVT) controller."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from .lowpass import LowPassFilter

MOTOR_NAMES = ("joint1", "joint2", "joint3", "joint4", "joint5", "joint6", "joint7")


@dataclass
class JointConfig:
    """Control gains and limits of one joint."""

    kp: float = 0.0
    kd: float = 0.0
    max_torque: float = 400.0
    max_speed: float = 50.0
    max_pos: float = 3.14
    min_pos: float = -3.14
    lpf_cutoff: float = 0.0


def _number(entry: dict, key: str) -> float:
    value = entry.get(key)
    return 0.0 if value is None else float(value)


def load_joint_config(path) -> dict[str, JointConfig]:
    """Read the per-joint configuration file.

    Missing joints or keys read as zero.
    """
    with Path(path).open("rb") as handle:
        root = json.load(handle)
    configs = {}
    for name in MOTOR_NAMES:
        entry = root.get(name) or {}
        configs[name] = JointConfig(
            kp=_number(entry, "kp"),
            kd=_number(entry, "kd"),
            max_torque=_number(entry, "maxTorque"),
            max_speed=_number(entry, "maxSpeed"),
            max_pos=_number(entry, "maxPos"),
            min_pos=_number(entry, "minPos"),
            lpf_cutoff=_number(entry, "PVT_LPF_Fc"),
        )
    return configs


class PvtController:
    """MIT-style joint controller: ``tau = kp*(q_des-q) + kd*(dq_des-dq) + tau_ff``.

    The PD part is low-pass filtered and the total torque saturated.
    """

    def __init__(self, time_step, config):
        self.motor_names = MOTOR_NAMES
        self.joint_num = len(MOTOR_NAMES)
        n = self.joint_num
        defaults = JointConfig()
        joints = [config.get(name, defaults) for name in MOTOR_NAMES]

        self.pvt_kp = [j.kp for j in joints]
        self.pvt_kd = [j.kd for j in joints]
        self.max_tor = [j.max_torque for j in joints]
        self.max_vel = [j.max_speed for j in joints]
        self.max_pos = [j.max_pos for j in joints]
        self.min_pos = [j.min_pos for j in joints]
        self._filters = []
        for j in joints:
            lpf = LowPassFilter()
            lpf.set_params(j.lpf_cutoff, time_step)
            lpf.filter(0.0)
            self._filters.append(lpf)
        self._pv_enable = [1] * n

        self.motor_pos_cur = [0.0] * n
        self.motor_vel = [0.0] * n
        self.motor_pos_des_old = [0.0] * n
        self.motor_tor_out = [0.0] * n
        self.motor_pos_des: list[float] = []
        self.motor_vel_des: list[float] = []
        self.motor_tor_des: list[float] = []

    @classmethod
    def from_json(cls, time_step, path) -> "PvtController":
        """Build a controller from a configuration file."""
        return cls(time_step, load_joint_config(path))

    def read_bus(self, bus) -> None:
        """Take the measured and desired joint values from the bus."""
        n = self.joint_num
        self.motor_pos_cur = list(bus.motors_pos_cur[:n])
        self.motor_vel = list(bus.motors_vel_cur[:n])
        self.motor_pos_des = list(bus.motors_pos_des)
        self.motor_vel_des = list(bus.motors_vel_des)
        self.motor_tor_des = list(bus.motors_tor_des)

    def write_bus(self, bus) -> None:
        """Publish the computed torques."""
        bus.motors_tor_out = list(self.motor_tor_out)
        bus.motors_tor_cur = list(self.motor_tor_out)

    def set_joint_pd(self, kp, kd, joint_name) -> None:
        """Set the gains of the named joint."""
        try:
            idx = self.motor_names.index(joint_name)
        except ValueError:
            raise KeyError(f"{joint_name} NOT found!") from None
        self.pvt_kp[idx] = kp
        self.pvt_kd[idx] = kd

    def enable_pv(self, joint=None) -> None:
        """Enable the PD terms of one joint, or of all when ``joint`` is None."""
        if joint is None:
            self._pv_enable = [1] * self.joint_num
        else:
            self._pv_enable[joint] = 1

    def disable_pv(self, joint=None) -> None:
        """Disable the PD terms of one joint, or of all when ``joint`` is None."""
        if joint is None:
            self._pv_enable = [0] * self.joint_num
        else:
            self._pv_enable[joint] = 0

    def compute(self, delta_limit=None) -> list[float]:
        """Compute joint torques.

        With ``delta_limit`` the desired position may move at most that much
        per call from the previous one.
        """
        for i in range(self.joint_num):
            p_des = self.motor_pos_des[i]
            if delta_limit is not None:
                delta = p_des - self.motor_pos_des_old[i]
                if abs(delta) >= abs(delta_limit):
                    delta = delta_limit if delta >= 0 else -delta_limit
                p_des = delta + self.motor_pos_des_old[i]
            enable = self._pv_enable[i]
            tau = enable * self.pvt_kp[i] * (p_des - self.motor_pos_cur[i]) + enable * self.pvt_kd[
                i
            ] * (self.motor_vel_des[i] - self.motor_vel[i])
            tau = self._filters[i].filter(tau) + self.motor_tor_des[i]
            if abs(tau) >= abs(self.max_tor[i]):
                tau = self.max_tor[i] if tau >= 0 else -self.max_tor[i]
            self.motor_tor_out[i] = tau
            self.motor_pos_des_old[i] = p_des
        return list(self.motor_tor_out)