"""Gravity compensation for the arm joints from identified sine fits."""

from __future__ import annotations

import math
from collections.abc import Sequence

# Each row is (sine coefficient, cosine coefficient, offset) for one joint.
G_PARAMS: tuple[tuple[float, float, float], ...] = (
    (0.0, 0.0, 0.0),
    (0.40767, 1.67476, -0.71947),
    (0.0, 0.0, 0.0),
    (0.0, 0.0, 0.0),
    (0.0, 0.0, 0.0),
    (0.0, 0.0, 0.0),
)

K_COUPLE = 1.0
K_TOTAL = 1.0


def gravity_compensation(
    q: Sequence[float],
    params: Sequence[Sequence[float]] = G_PARAMS,
) -> list[float]:
    """Return feed-forward torques for joint angles ``q`` (radians).

    Only joints 2 and 3 receive a torque; joint 3 uses its global angle
    ``q[1] + q[2]`` and its load is carried over onto joint 2.
    """
    if len(q) < 3:
        raise ValueError("need at least three joint angles")
    if len(params) < 3:
        raise ValueError("need parameters for at least three joints")

    tau = [0.0] * max(len(q), len(G_PARAMS))

    s3, c3, o3 = params[2]
    q3_global = q[1] + q[2]
    tau[2] = s3 * math.sin(q3_global) + c3 * math.cos(q3_global) + o3

    s2, c2, o2 = params[1]
    tau2_self = s2 * math.sin(q[1]) + c2 * math.cos(q[1]) + o2
    tau[1] = (tau2_self + tau[2] * K_COUPLE) * K_TOTAL
    return tau