# legctrl

Estimation and control building blocks for robots: a PID controller, two
attitude estimators, a general Kalman filter and gravity compensation for a
small manipulator arm. Everything is plain Python on top of numpy. You can run
it on a desktop for simulation, for tuning and for offline analysis of logged
sensor data.

## What is inside

- `legctrl.pid`
  - `Pid` is a controller in position or incremental form, chosen with `PidMode.POSITION` or `PidMode.DELTA`.
  - It has a symmetric output limit (`max_out`) and an integral limit (`max_iout`).
  - `calc(ref, setpoint)` runs one step and returns the output.
  - `clear()` resets the history and keeps the gains.
- `legctrl.mahony`
  - `MahonyFilter` is a complementary attitude filter. It takes `Axis3` gyro (rad/s) and accelerometer samples.
  - `set_input(gyro, acc)` stores the samples and `update()` fuses them into the quaternion.
  - `output()` sets `pitch`, `roll` and `yaw` in radians.
  - `update()` raises `ValueError` for an all-zero accelerometer sample.
- `legctrl.kalman`
  - `KalmanFilter` is a linear filter that runs the five standard equations.
  - Any equation can be skipped with the `skip_eq1` … `skip_eq5` flags.
  - Seven optional hooks (`hooks[0]` … `hooks[6]`) run between the steps.
  - With `use_auto_adjustment` set, a zero entry in `measured_vector` marks that measurement as missing. `H`, `R`, `K` and `z` are then rebuilt from the valid measurements, using `measurement_map`, `measurement_degree` and `mat_r_diagonal_elements`.
  - `state_min_variance` puts a floor under the diagonal of `P`.
- `legctrl.quaternion_ekf`
  - `QuaternionEKF` is a quaternion attitude EKF built on `KalmanFilter`. It estimates the x and y gyro bias.
  - It gates the accelerometer correction with a chi-square test.
  - `update(gx, gy, gz, ax, ay, az, dt)` returns the quaternion. It also sets `roll`, `pitch`, `yaw` and the unwrapped `yaw_total_angle`, all in degrees.
  - `inv_sqrt(x)` is the fast inverse square root approximation the filter uses.
- `legctrl.dynamic`
  - `gravity_compensation(q, params=G_PARAMS)` returns feed-forward torques for joint angles in radians.
  - Only joints 2 and 3 receive a torque. The load of joint 3 is added onto joint 2.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

PID control:

```python
from legctrl.pid import Pid, PidMode

pid = Pid(PidMode.POSITION, kp=30.0, ki=0.0, kd=1.0, max_out=2.0, max_iout=0.0)
output = pid.calc(ref=0.1, setpoint=0.0)
```

Mahony attitude:

```python
from legctrl.mahony import Axis3, MahonyFilter

mahony = MahonyFilter(kp=1.0, ki=0.0, dt=0.001)
mahony.set_input(Axis3(0.0, 0.0, 0.0), Axis3(0.0, 0.0, 9.81))
mahony.update()
mahony.output()
print(mahony.roll, mahony.pitch, mahony.yaw)
```

Quaternion EKF:

```python
from legctrl.quaternion_ekf import QuaternionEKF

ekf = QuaternionEKF()
q = ekf.update(0.0, 0.0, 0.0, 0.0, 0.0, 9.81, dt=0.001)
```

A plain Kalman filter:

```python
import numpy as np
from legctrl.kalman import KalmanFilter

dt = 0.01
kf = KalmanFilter(2, 0, 1)
kf.F = np.array([[1.0, dt], [0.0, 1.0]])
kf.P = np.eye(2)
kf.Q = np.eye(2) * 1e-3
kf.H = np.array([[1.0, 0.0]])
kf.R = np.array([[0.1]])
kf.measured_vector[:] = [0.5]
state = kf.update()
```

Angles are in radians and lengths are in metres, except where a docstring says otherwise. The quaternion EKF reports its Euler angles in degrees.

## What this package does not do

These are algorithms only. The package has:

- no code that reads sensors or drives motors;
- no task loop or scheduler;
- no command-line tool.

It does not cover:

- leg kinematics;
- ground-contact detection;
- gamepad or keyboard input handling;
- a chassis or arm state machine.

To run a robot, call the classes and functions above from your own loop, with data from your own hardware layer.