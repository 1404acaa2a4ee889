"""Quaternion attitude EKF with gyro-bias estimation and a chi-square gate.

The state is ``[q0, q1, q2, q3, bias_x, bias_y]``. The accelerometer,
normalised, is the measurement of the gravity direction in the body frame.
Residuals that fail a chi-square test are ignored once the filter has
converged. The only exception is when the body is at rest and the test keeps
failing, which is taken as divergence and makes the filter accept
measurements again.
"""

from __future__ import annotations

import math
import struct

import numpy as np

from legctrl.kalman import KalmanFilter

_RAD2DEG = 57.295779513
_HALF_PI = 1.5707963
_P_LIMIT = 10000.0
_BIAS_STEP_LIMIT = 1e-2
_DIVERGENCE_COUNT = 50

INITIAL_P = np.array(
    [[1.0 if row == col else 0.1 for col in range(6)] for row in range(6)]
)


def inv_sqrt(x: float) -> float:
    """Approximate ``1/sqrt(x)`` with the bit-level trick and one Newton step.

    For ``x == 0`` the result is very large rather than infinite.
    """
    half_x = 0.5 * x
    (bits,) = struct.unpack("<i", struct.pack("<f", x))
    bits = (0x5F375A86 - (bits >> 1)) & 0xFFFFFFFF
    (y,) = struct.unpack("<f", struct.pack("<I", bits))
    return y * (1.5 - half_x * y * y)


class QuaternionEKF:
    """Attitude estimator fusing gyroscope and accelerometer samples."""

    chi_square_test_threshold = 1e-8

    def __init__(
        self,
        process_noise1: float = 10.0,
        process_noise2: float = 0.001,
        measure_noise: float = 1e7,
        fading: float = 1.0,
        lpf: float = 0.0,
    ) -> None:
        if fading <= 0:
            raise ValueError("fading coefficient must be positive")
        self.q1 = process_noise1
        self.q2 = process_noise2
        self.r = measure_noise
        self.fading = min(fading, 1.0)
        self.acc_lpf_coef = lpf

        self.converge_flag = False
        self.stable_flag = False
        self.error_count = 0
        self.update_count = 0

        self.q: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)
        self.gyro_bias = [0.0, 0.0, 0.0]
        self.gyro = [0.0, 0.0, 0.0]
        self.accel = [0.0, 0.0, 0.0]
        self.orientation_cosine = [0.0, 0.0, 0.0]
        self.gyro_norm = 0.0
        self.accl_norm = 0.0
        self.adaptive_gain_scale = 0.0
        self.chi_square = 0.0
        self.dt = 0.0

        self.roll = 0.0
        self.pitch = 0.0
        self.yaw = 0.0
        self.yaw_total_angle = 0.0
        self.yaw_round_count = 0
        self.yaw_angle_last = 0.0

        self.observed_P = INITIAL_P.copy()
        self.observed_K = np.zeros((6, 3))
        self.observed_H = np.zeros((3, 6))

        kf = KalmanFilter(6, 0, 3)
        kf.xhat[:4] = (1.0, 0.0, 0.0, 0.0)
        kf.hooks[0] = self._observe
        kf.hooks[1] = self._linearize_f_and_fade_p
        kf.hooks[2] = self._set_h
        kf.hooks[3] = self._xhat_update
        kf.skip_eq3 = True
        kf.skip_eq4 = True
        kf.F = np.eye(6)
        kf.P = INITIAL_P.copy()
        self.kf = kf

    def update(
        self,
        gx: float,
        gy: float,
        gz: float,
        ax: float,
        ay: float,
        az: float,
        dt: float,
    ) -> tuple[float, float, float, float]:
        """Fuse one gyro (rad/s) and accel (m/s^2) sample; return the quaternion."""
        if dt <= 0:
            raise ValueError("update period must be positive")
        kf = self.kf
        self.dt = dt
        self.gyro = [gx - self.gyro_bias[0], gy - self.gyro_bias[1], gz - self.gyro_bias[2]]

        hx, hy, hz = (0.5 * g * dt for g in self.gyro)
        f = np.eye(6)
        f[0, 1], f[0, 2], f[0, 3] = -hx, -hy, -hz
        f[1, 0], f[1, 2], f[1, 3] = hx, hz, -hy
        f[2, 0], f[2, 1], f[2, 3] = hy, -hz, hx
        f[3, 0], f[3, 1], f[3, 2] = hz, hy, -hx
        kf.F = f

        sample = (ax, ay, az)
        if self.update_count == 0:
            self.accel = list(sample)
        coef = self.acc_lpf_coef
        self.accel = [
            prev * coef / (dt + coef) + new * dt / (dt + coef)
            for prev, new in zip(self.accel, sample)
        ]

        accel_inv_norm = inv_sqrt(sum(a * a for a in self.accel))
        kf.measured_vector[:] = [a * accel_inv_norm for a in self.accel]

        self.gyro_norm = 1.0 / inv_sqrt(sum(g * g for g in self.gyro))
        self.accl_norm = 1.0 / accel_inv_norm
        self.stable_flag = self.gyro_norm < 0.3 and 9.8 - 0.5 < self.accl_norm < 9.8 + 0.5

        kf.Q = np.diag([self.q1 * dt] * 4 + [self.q2 * dt] * 2)
        kf.R = np.diag([self.r] * 3)

        filtered = kf.update()

        self.q = tuple(float(v) for v in filtered[:4])
        self.gyro_bias = [float(filtered[4]), float(filtered[5]), 0.0]

        q0, q1, q2, q3 = self.q
        self.yaw = math.atan2(2.0 * (q0 * q3 + q1 * q2), 2.0 * (q0 * q0 + q1 * q1) - 1.0) * _RAD2DEG
        self.pitch = math.atan2(2.0 * (q0 * q1 + q2 * q3), 2.0 * (q0 * q0 + q3 * q3) - 1.0) * _RAD2DEG
        sin_roll = max(-1.0, min(1.0, -2.0 * (q1 * q3 - q0 * q2)))
        self.roll = math.asin(sin_roll) * _RAD2DEG

        delta = self.yaw - self.yaw_angle_last
        if delta > 180.0:
            self.yaw_round_count -= 1
        elif delta < -180.0:
            self.yaw_round_count += 1
        self.yaw_total_angle = 360.0 * self.yaw_round_count + self.yaw
        self.yaw_angle_last = self.yaw
        self.update_count += 1
        return self.q

    def _observe(self, kf: KalmanFilter) -> None:
        self.observed_P = kf.P.copy()
        self.observed_K = kf.K.copy()
        self.observed_H = kf.H.copy()

    def _linearize_f_and_fade_p(self, kf: KalmanFilter) -> None:
        q0, q1, q2, q3 = (float(v) for v in kf.xhatminus[:4])
        inv_norm = inv_sqrt(q0 * q0 + q1 * q1 + q2 * q2 + q3 * q3)
        kf.xhatminus[:4] *= inv_norm

        half_dt = self.dt / 2
        kf.F[0, 4], kf.F[0, 5] = q1 * half_dt, q2 * half_dt
        kf.F[1, 4], kf.F[1, 5] = -q0 * half_dt, q3 * half_dt
        kf.F[2, 4], kf.F[2, 5] = -q3 * half_dt, -q0 * half_dt
        kf.F[3, 4], kf.F[3, 5] = q2 * half_dt, -q1 * half_dt

        for index in (4, 5):
            kf.P[index, index] = min(kf.P[index, index] / self.fading, _P_LIMIT)

    def _set_h(self, kf: KalmanFilter) -> None:
        d0, d1, d2, d3 = (2.0 * float(v) for v in kf.xhatminus[:4])
        h = np.zeros((3, 6))
        h[0, :4] = (-d2, d3, -d0, d1)
        h[1, :4] = (d1, d0, d3, d2)
        h[2, :4] = (d0, -d1, -d2, d3)
        kf.H = h

    def _xhat_update(self, kf: KalmanFilter) -> None:
        kf.HT = kf.H.T.copy()
        kf.S = kf.H @ kf.Pminus @ kf.HT + kf.R
        s_inv = np.linalg.inv(kf.S)

        q0, q1, q2, q3 = (float(v) for v in kf.xhatminus[:4])
        predicted = np.array(
            [
                2.0 * (q1 * q3 - q0 * q2),
                2.0 * (q0 * q1 + q2 * q3),
                q0 * q0 - q1 * q1 - q2 * q2 + q3 * q3,
            ]
        )
        self.orientation_cosine = [math.acos(min(1.0, abs(float(v)))) for v in predicted]

        innovation = kf.z - predicted
        self.chi_square = float(innovation @ s_inv @ innovation)
        threshold = self.chi_square_test_threshold

        if self.chi_square < 0.5 * threshold:
            self.converge_flag = True

        if self.chi_square > threshold and self.converge_flag:
            self.error_count = self.error_count + 1 if self.stable_flag else 0
            if self.error_count > _DIVERGENCE_COUNT:
                self.converge_flag = False
                kf.skip_eq5 = False
            else:
                kf.xhat = kf.xhatminus.copy()
                kf.P = kf.Pminus.copy()
                kf.skip_eq5 = True
                return
        else:
            if self.chi_square > 0.1 * threshold and self.converge_flag:
                self.adaptive_gain_scale = (threshold - self.chi_square) / (0.9 * threshold)
            else:
                self.adaptive_gain_scale = 1.0
            self.error_count = 0
            kf.skip_eq5 = False

        gain = kf.Pminus @ kf.HT @ s_inv
        gain *= self.adaptive_gain_scale
        for row in (4, 5):
            gain[row, :] *= self.orientation_cosine[row - 4] / _HALF_PI
        kf.K = gain

        correction = gain @ innovation
        if self.converge_flag:
            limit = _BIAS_STEP_LIMIT * self.dt
            correction[4:6] = np.clip(correction[4:6], -limit, limit)
        correction[3] = 0.0
        kf.xhat = kf.xhatminus + correction