"""Estimation and control algorithms: PID, Mahony and quaternion EKF attitude, Kalman filtering and arm gravity compensation."""

__version__ = "0.1.0"
__all__ = [
    "pid",
    "mahony",
    "kalman",
    "quaternion_ekf",
    "dynamic",
]