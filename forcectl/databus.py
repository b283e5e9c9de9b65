"""Shared state passed between the simulator, estimators and controllers."""

from __future__ import annotations

import numpy as np


def _format_row(values) -> str:
    texts = [f"{float(v):.5g}" for v in values]
    width = max((len(t) for t in texts), default=0)
    return " ".join(t.rjust(width) for t in texts)


def _format_blocks(vector, blocks) -> str:
    vec = np.asarray(vector, dtype=float).reshape(-1)
    needed = max(start + size for start, size in blocks)
    if vec.size < needed:
        raise ValueError(f"vector needs at least {needed} entries, got {vec.size}")
    return "".join(_format_row(vec[start:start + size]) + "\n" for start, size in blocks)


_Q_BLOCKS = ((0, 7), (7, 7), (14, 7), (21, 4), (25, 6), (31, 6))
_DQ_BLOCKS = ((0, 6), (6, 7), (13, 7), (20, 4), (24, 6), (30, 6))


class DataBus:
    """Robot state, commands and model quantities for one control cycle."""

    def __init__(self, model_nv):
        self.model_nv = int(model_nv)
        nv = self.model_nv

        self.motors_pos_cur = [0.0] * nv
        self.motors_vel_cur = [0.0] * nv
        self.motors_tor_cur = [0.0] * nv

        self.motors_pos_des = [0.0] * nv
        self.motors_vel_des = [0.0] * nv
        self.motors_tor_des = [0.0] * nv
        self.motors_tor_out = [0.0] * nv

        self.q = np.zeros(nv)
        self.dq = np.zeros(nv)
        self.ddq = np.zeros(nv)
        self.q_old = np.zeros(nv)
        self.J_tool0 = np.zeros((0, 0))
        self.dJ_tool0 = np.zeros((0, 0))

        self.tool0_pos_W = np.zeros(3)
        self.tool0_rot_W = np.zeros((3, 3))
        self.tool0_pos_b = np.zeros(3)
        self.tool_R = np.zeros((3, 3))
        self.q_cmd = np.zeros(nv)
        self.dq_cmd = np.zeros(nv)
        self.tau_joint_cmd = np.zeros(nv)
        self.dyn_M = np.zeros((0, 0))
        self.dyn_M_inv = np.zeros((0, 0))
        self.dyn_C = np.zeros((0, 0))
        self.dyn_Ag = np.zeros((0, 0))
        self.dyn_dAg = np.zeros((0, 0))
        self.dyn_G = np.zeros(0)
        self.dyn_Non = np.zeros(0)

        self.slop = np.zeros(3)
        self.inertia = np.zeros((3, 3))

        self.js_eul_des = np.zeros(3)
        self.js_pos_des = np.zeros(3)
        self.js_omega_des = np.zeros(3)
        self.js_vel_des = np.zeros(3)

        self.Xd = np.zeros(12 * 10)
        self.X_cur = np.zeros(12)
        self.X_cal = np.zeros(12)
        self.dX_cal = np.zeros(12)
        self.fe_react_tau_cmd = np.zeros(13 * 3)

        self.qp_nWSR_MPC = 0
        self.qp_cpuTime_MPC = 0.0
        self.qpStatus_MPC = 0

        self.base_rpy_des = np.zeros(3)
        self.base_pos_des = np.zeros(3)
        self.des_ddq = np.zeros(nv)
        self.des_dq = np.zeros(nv)
        self.des_delta_q = np.zeros(nv)
        self.des_q = np.zeros(0)
        self.swing_fe_pos_des_W = np.zeros(3)
        self.swing_fe_rpy_des_W = np.zeros(3)
        self.stance_fe_pos_cur_W = np.zeros(3)
        self.stance_fe_rot_cur_W = np.zeros((3, 3))
        self.wbc_delta_q_final = np.zeros(0)
        self.wbc_dq_final = np.zeros(0)
        self.wbc_ddq_final = np.zeros(0)
        self.wbc_tauJointRes = np.zeros(0)
        self.wbc_FrRes = np.zeros(0)
        self.Fr_ff = np.zeros(0)
        self.qp_nWSR = 0
        self.qp_cpuTime = 0.0
        self.qp_status = 0

        self.thetaZ_des = 0.0

        self.base_pos_stand = np.zeros(3)
        self.pfeW_stand = np.zeros(6)
        self.pfeW0 = np.zeros(6)

    @staticmethod
    def format_q(q) -> str:
        """Render a configuration vector as six lines grouped by limb."""
        return _format_blocks(q, _Q_BLOCKS)

    @staticmethod
    def format_dq(dq) -> str:
        """Render a velocity vector as six lines grouped by limb."""
        return _format_blocks(dq, _DQ_BLOCKS)