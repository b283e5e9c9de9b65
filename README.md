# forcectl

Building blocks for controlling a seven-joint robot arm: rotation and
pseudo-inverse helpers, a first-order low-pass filter, a shared data bus,
a position/velocity/torque (PVT) joint controller and a damped
least-squares inverse-kinematics solver that works on a URDF model.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Modules

- `forcectl.mathutil`: `eul2rot`, `rot2eul`, `eul2quat`, `rot2quat`,
  `quat2rot`, `diff_rot`, `quat2axis_angle`, `int_quat`, `rx3`, `ry3`,
  `rz3`, `cross_product_matrix`, `pseudo_inv_svd`, `pseudo_inv_right`,
  `pseudo_inv_right_weighted`, `dyn_pseudo_inv`, `ramp`, `limit`, `sign`.
  Quaternions are numpy arrays ordered `(w, x, y, z)`.
- `forcectl.lowpass`: `LowPassFilter`, a first-order filter whose first
  sample passes through unchanged. Set it up with
  `LowPassFilter(cutoff, sample_time)` or `set_params`, then feed samples
  to `filter`.
- `forcectl.databus`: `DataBus`, the state shared between the simulator
  side and the controllers, with the static helpers `format_q` and
  `format_dq` that render a long state vector as six lines.
- `forcectl.pvt`: `JointConfig`, `load_joint_config` and `PvtController`,
  an MIT-style joint controller `tau = kp*(q_des - q) + kd*(dq_des - dq)`
  whose PD part is low-pass filtered, with feed-forward torque, torque
  saturation, `enable_pv`/`disable_pv` per joint or for all, `set_joint_pd`
  and an optional per-call limit on the change of the position set-point
  (`compute(delta_limit)`).
- `forcectl.kinematics`: `RobotModel` (a URDF reader with forward
  kinematics via `frame_placement`/`joint_placement` and joint Jacobians
  via `joint_jacobian`), `log6`, `jlog6`, `IkResult` and `ArmKinematics`
  with `compute_ik`.

## Joint configuration

Controllers read a JSON file keyed by joint name (`joint1` … `joint7`).
Missing joints or keys read as zero:

```json
{
  "joint1": {"kp": 300, "kd": 20, "maxTorque": 320, "maxSpeed": 1.48,
             "maxPos": 2.96, "minPos": -2.96, "PVT_LPF_Fc": 50}
}
```

## Example

```python
from forcectl.databus import DataBus
from forcectl.pvt import PvtController

bus = DataBus(7)
ctrl = PvtController.from_json(0.001, "joint_ctrl_config.json")

bus.motors_pos_des = [0.0, 0.785398, 0.0, -1.5708, 0.0, 0.0, 0.0]
ctrl.read_bus(bus)
ctrl.compute(30 / 1000 / 180 * 3.1415)   # limit set-point change per call
ctrl.write_bus(bus)
print(bus.motors_tor_out)
```

Inverse kinematics against a URDF whose joints are named
`iiwa_joint_1` … `iiwa_joint_7` with an end-effector link `iiwa_link_ee`:

```python
from forcectl.kinematics import ArmKinematics
from forcectl.mathutil import eul2rot

arm = ArmKinematics("iiwa14.urdf", "joint_ctrl_config.json")
result = arm.compute_ik(eul2rot(0.0, 3.1415, 0.0), [0.6667, 0.0, 0.2791])
print(result.status, result.itr, result.joint_pose)
```

`status` is 0 when the pose error fell below the tolerance and -1 when the
iteration limit (100) was reached first; `err` holds the last pose error
as a twist `(v, w)`.

## What it does not do

- There is no physics simulation, viewer or window: the bus must be
  filled from whatever simulator or robot you run.
- There is no command-line program; everything is used as a library.
- `ArmKinematics` does not compute dynamics: its mass, Coriolis and
  gravity matrices stay zero and `write_bus` publishes them as they are.