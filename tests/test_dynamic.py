import math

import pytest

from legctrl.dynamic import G_PARAMS, gravity_compensation


def zero_params():
    return [[0.0, 0.0, 0.0] for _ in range(6)]


def test_identified_parameters_for_joint_two():
    assert G_PARAMS[1] == (0.40767, 1.67476, -0.71947)
    tau = gravity_compensation([0.0] * 6)
    assert tau[2] == 0.0
    assert tau[0] == 0.0
    assert tau[1] == pytest.approx(1.67476 - 0.71947)


def test_joint_three_load_is_added_to_joint_two():
    params = zero_params()
    params[1][2] = 0.3
    params[2][2] = 0.2
    tau = gravity_compensation([0.0] * 6, params)
    assert tau[2] == pytest.approx(0.2)
    assert tau[1] == pytest.approx(0.3 + 0.2)


def test_joint_three_uses_global_angle():
    params = zero_params()
    params[2][0] = 1.0
    a = gravity_compensation([0.0, 0.4, 0.3, 0.0, 0.0, 0.0], params)
    b = gravity_compensation([0.0, 0.3, 0.4, 0.0, 0.0, 0.0], params)
    assert a[2] == pytest.approx(b[2])
    assert a[2] == pytest.approx(math.sin(0.7))


def test_other_joints_are_not_compensated():
    tau = gravity_compensation([0.5] * 6)
    assert len(tau) == 6
    assert tau[0] == tau[3] == tau[4] == tau[5] == 0.0


def test_short_angle_vector_raises():
    with pytest.raises(ValueError):
        gravity_compensation([0.0, 0.0])