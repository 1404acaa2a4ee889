"""Positional and incremental PID controller."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class PidMode(enum.IntEnum):
    """How the controller forms its output."""

    POSITION = 0
    DELTA = 1


def _limit(value: float, maximum: float) -> float:
    """Clamp ``value`` to the symmetric band ``[-maximum, maximum]``."""
    if value > maximum:
        return maximum
    if value < -maximum:
        return -maximum
    return value


@dataclass
class Pid:
    """PID controller with output and integral limits.

    ``error`` and ``dbuf`` hold the newest value first, then the previous
    and the one before it.
    """

    mode: PidMode
    kp: float
    ki: float
    kd: float
    max_out: float
    max_iout: float
    setpoint: float = field(default=0.0, init=False)
    fdb: float = field(default=0.0, init=False)
    out: float = field(default=0.0, init=False)
    pout: float = field(default=0.0, init=False)
    iout: float = field(default=0.0, init=False)
    dout: float = field(default=0.0, init=False)
    dbuf: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0], init=False)
    error: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0], init=False)

    def __post_init__(self) -> None:
        self.mode = PidMode(self.mode)

    def calc(self, ref: float, setpoint: float) -> float:
        """Run one control step from feedback ``ref`` towards ``setpoint``."""
        self.error = [setpoint - ref, self.error[0], self.error[1]]
        self.setpoint = setpoint
        self.fdb = ref
        e0, e1, e2 = self.error

        if self.mode is PidMode.POSITION:
            self.pout = self.kp * e0
            self.iout += self.ki * e0
            self.dbuf = [e0 - e1, self.dbuf[0], self.dbuf[1]]
            self.dout = self.kd * self.dbuf[0]
            self.iout = _limit(self.iout, self.max_iout)
            self.out = _limit(self.pout + self.iout + self.dout, self.max_out)
        else:
            self.pout = self.kp * (e0 - e1)
            self.iout = self.ki * e0
            self.dbuf = [e0 - 2.0 * e1 + e2, self.dbuf[0], self.dbuf[1]]
            self.dout = self.kd * self.dbuf[0]
            self.out = _limit(self.out + self.pout + self.iout + self.dout, self.max_out)
        return self.out

    def clear(self) -> None:
        """Reset all history and outputs, keeping the gains and limits."""
        self.error = [0.0, 0.0, 0.0]
        self.dbuf = [0.0, 0.0, 0.0]
        self.out = self.pout = self.iout = self.dout = 0.0
        self.fdb = self.setpoint = 0.0