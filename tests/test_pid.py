import pytest

from legctrl.pid import Pid, PidMode


def make(mode=PidMode.POSITION, kp=0.0, ki=0.0, kd=0.0, max_out=100.0, max_iout=0.0):
    return Pid(mode, kp, ki, kd, max_out, max_iout)


def test_proportional_position():
    pid = make(kp=2.0)
    assert pid.calc(1.0, 4.0) == pytest.approx(2.0 * 3.0)


def test_output_clamped_both_ways():
    pid = make(kp=10.0, max_out=5.0)
    assert pid.calc(0.0, 1000.0) == 5.0
    assert pid.calc(0.0, -1000.0) == -5.0


def test_integral_clamped():
    pid = make(ki=1.0, max_iout=2.5)
    for _ in range(10):
        pid.calc(0.0, 1.0)
    assert pid.iout == 2.5
    assert pid.out == 2.5


def test_derivative_uses_error_difference():
    pid = make(kd=3.0)
    first = pid.calc(0.0, 2.0)
    second = pid.calc(0.0, 2.0)
    assert first == pytest.approx(3.0 * 2.0)
    assert second == 0.0


def test_error_history_shifts():
    pid = make(kp=1.0)
    pid.calc(0.0, 1.0)
    pid.calc(0.0, 2.0)
    pid.calc(0.0, 3.0)
    assert pid.error == [3.0, 2.0, 1.0]
    assert pid.setpoint == 3.0
    assert pid.fdb == 0.0


def test_delta_mode_holds_output_for_constant_error():
    pid = make(mode=PidMode.DELTA, kp=1.5)
    first = pid.calc(0.0, 2.0)
    second = pid.calc(0.0, 2.0)
    assert first == pytest.approx(1.5 * 2.0)
    assert second == pytest.approx(first)


def test_delta_mode_integral_accumulates_and_clamps():
    pid = make(mode=PidMode.DELTA, ki=1.0, max_out=3.0)
    outputs = [pid.calc(0.0, 1.0) for _ in range(5)]
    assert outputs[:3] == [1.0, 2.0, 3.0]
    assert outputs[-1] == 3.0


def test_mode_accepts_int():
    pid = Pid(1, 1.0, 0.0, 0.0, 10.0, 0.0)
    assert pid.mode is PidMode.DELTA


def test_clear_resets_state():
    pid = make(kp=1.0, ki=1.0, kd=1.0, max_iout=10.0)
    pid.calc(0.5, 3.0)
    pid.calc(0.2, 4.0)
    pid.clear()
    assert pid.error == [0.0, 0.0, 0.0]
    assert pid.dbuf == [0.0, 0.0, 0.0]
    assert (pid.out, pid.pout, pid.iout, pid.dout) == (0.0, 0.0, 0.0, 0.0)
    assert (pid.fdb, pid.setpoint) == (0.0, 0.0)
    assert pid.kp == 1.0