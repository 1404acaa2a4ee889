"""Mahony complementary filter for attitude estimation."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

DEG2RAD = 0.0174533
RAD2DEG = 57.295671


@dataclass
class Axis3:
    """A three-axis sample."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def norm(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


def _zero_matrix() -> list[list[float]]:
    return [[0.0, 0.0, 0.0] for _ in range(3)]


@dataclass
class MahonyFilter:
    """Mahony filter state: gains, quaternion, rotation matrix and Euler angles."""

    kp: float
    ki: float
    dt: float
    gyro: Axis3 = field(default_factory=Axis3)
    acc: Axis3 = field(default_factory=Axis3)
    ex_int: float = 0.0
    ey_int: float = 0.0
    ez_int: float = 0.0
    q0: float = 1.0
    q1: float = 0.0
    q2: float = 0.0
    q3: float = 0.0
    r_mat: list[list[float]] = field(default_factory=_zero_matrix)
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0

    @property
    def quaternion(self) -> tuple[float, float, float, float]:
        return (self.q0, self.q1, self.q2, self.q3)

    def set_input(self, gyro: Axis3, acc: Axis3) -> None:
        """Store gyro (rad/s) and accelerometer samples for the next update."""
        self.gyro = replace(gyro)
        self.acc = replace(acc)

    def update_rotation_matrix(self) -> None:
        """Recompute the rotation matrix from the current quaternion."""
        q0, q1, q2, q3 = self.quaternion
        q1q1, q2q2, q3q3 = q1 * q1, q2 * q2, q3 * q3
        q0q1, q0q2, q0q3 = q0 * q1, q0 * q2, q0 * q3
        q1q2, q1q3, q2q3 = q1 * q2, q1 * q3, q2 * q3
        self.r_mat = [
            [1.0 - 2.0 * q2q2 - 2.0 * q3q3, 2.0 * (q1q2 - q0q3), 2.0 * (q1q3 + q0q2)],
            [2.0 * (q1q2 + q0q3), 1.0 - 2.0 * q1q1 - 2.0 * q3q3, 2.0 * (q2q3 - q0q1)],
            [2.0 * (q1q3 - q0q2), 2.0 * (q2q3 + q0q1), 1.0 - 2.0 * q1q1 - 2.0 * q2q2],
        ]

    def update(self) -> None:
        """Fuse the stored samples into the quaternion."""
        norm = self.acc.norm()
        if norm == 0.0:
            raise ValueError("accelerometer sample has zero magnitude")
        acc = Axis3(self.acc.x / norm, self.acc.y / norm, self.acc.z / norm)
        self.acc = acc

        vx, vy, vz = self.r_mat[2]
        ex = acc.y * vz - acc.z * vy
        ey = acc.z * vx - acc.x * vz
        ez = acc.x * vy - acc.y * vx

        self.ex_int += self.ki * ex * self.dt
        self.ey_int += self.ki * ey * self.dt
        self.ez_int += self.ki * ez * self.dt

        gyro = self.gyro
        gyro.x += self.kp * ex + self.ex_int
        gyro.y += self.kp * ey + self.ey_int
        gyro.z += self.kp * ez + self.ez_int

        q0, q1, q2, q3 = self.quaternion
        half_t = self.dt * 0.5
        q0 += (-q1 * gyro.x - q2 * gyro.y - q3 * gyro.z) * half_t
        q1 += (self.q0 * gyro.x + q2 * gyro.z - q3 * gyro.y) * half_t
        q2 += (self.q0 * gyro.y - self.q1 * gyro.z + q3 * gyro.x) * half_t
        q3 += (self.q0 * gyro.z + self.q1 * gyro.y - self.q2 * gyro.x) * half_t

        qnorm = math.sqrt(q0 * q0 + q1 * q1 + q2 * q2 + q3 * q3)
        self.q0, self.q1, self.q2, self.q3 = q0 / qnorm, q1 / qnorm, q2 / qnorm, q3 / qnorm

        self.update_rotation_matrix()

    def output(self) -> None:
        """Derive pitch, roll and yaw (radians) from the rotation matrix."""
        r = self.r_mat
        self.pitch = -math.asin(max(-1.0, min(1.0, r[2][0])))
        self.roll = math.atan2(r[2][1], r[2][2])
        self.yaw = math.atan2(r[1][0], r[0][0])