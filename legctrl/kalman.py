"""Linear Kalman filter with hook points and measurement auto-adjustment.

The filter runs the five standard equations:

1. ``xhat'(k) = F xhat(k-1) + B u``
2. ``P'(k) = F P(k-1) F^T + Q``
3. ``K(k) = P'(k) H^T (H P'(k) H^T + R)^-1``
4. ``xhat(k) = xhat'(k) + K(k) (z(k) - H xhat'(k))``
5. ``P(k) = P'(k) - K(k) H P'(k)``

Any of them can be skipped through the ``skip_eq*`` flags, and seven hooks
(``hooks[0]`` to ``hooks[6]``) run between the steps, so extended filters can
replace or extend parts of the cycle.

With ``use_auto_adjustment`` set, a zero entry in ``measured_vector`` marks
that measurement as missing for this cycle; ``H``, ``R``, ``K`` and ``z`` are
rebuilt from the valid entries using ``measurement_map`` (1-based state index
each measurement observes), ``measurement_degree`` (the matching ``H``
element) and ``mat_r_diagonal_elements`` (each measurement's variance).
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np

Hook = Callable[["KalmanFilter"], None]

HOOK_COUNT = 7


class KalmanFilter:
    """Kalman filter state, matrices and update cycle."""

    def __init__(self, xhat_size: int, u_size: int, z_size: int) -> None:
        if xhat_size < 1:
            raise ValueError("state dimension must be at least 1")
        if u_size < 0 or z_size < 0:
            raise ValueError("control and measurement dimensions must not be negative")

        n, u, m = xhat_size, u_size, z_size
        self.xhat_size = n
        self.u_size = u
        self.z_size = m

        self.use_auto_adjustment = False
        self.measurement_valid_num = 0
        self.measurement_map = np.zeros(m, dtype=int)
        self.measurement_degree = np.zeros(m)
        self.mat_r_diagonal_elements = np.zeros(m)
        self.state_min_variance = np.zeros(n)

        self.filtered_value = np.zeros(n)
        self.measured_vector = np.zeros(m)
        self.control_vector = np.zeros(u)

        self.xhat = np.zeros(n)
        self.xhatminus = np.zeros(n)
        self.u = np.zeros(u)
        self.z = np.zeros(m)
        self.P = np.zeros((n, n))
        self.Pminus = np.zeros((n, n))
        self.F = np.zeros((n, n))
        self.FT = np.zeros((n, n))
        self.B = np.zeros((n, u))
        self.H = np.zeros((m, n))
        self.HT = np.zeros((n, m))
        self.Q = np.zeros((n, n))
        self.R = np.zeros((m, m))
        self.K = np.zeros((n, m))
        self.S = np.zeros((m, m))

        self.skip_eq1 = False
        self.skip_eq2 = False
        self.skip_eq3 = False
        self.skip_eq4 = False
        self.skip_eq5 = False

        self.hooks: list[Hook | None] = [None] * HOOK_COUNT

    def _run_hook(self, index: int) -> None:
        hook = self.hooks[index]
        if hook is not None:
            hook(self)

    def _adjust_measurement(self) -> None:
        """Rebuild ``z``, ``H``, ``R`` and ``K`` from the valid measurements."""
        measured = self.measured_vector.copy()
        self.measured_vector[:] = 0.0

        valid = [i for i, value in enumerate(measured) if value != 0]
        count = len(valid)
        h = np.zeros((count, self.xhat_size))
        for row, index in enumerate(valid):
            column = int(self.measurement_map[index]) - 1
            if not 0 <= column < self.xhat_size:
                raise ValueError(
                    f"measurement {index} maps to state {column + 1}, "
                    f"outside 1..{self.xhat_size}"
                )
            h[row, column] = self.measurement_degree[index]

        self.measurement_valid_num = count
        self.z = measured[valid]
        self.H = h
        self.HT = h.T.copy()
        self.R = np.diag(self.mat_r_diagonal_elements[valid])
        self.K = np.zeros((self.xhat_size, count))

    def measure(self) -> None:
        """Take the pending measurement and control vectors into the filter."""
        if self.use_auto_adjustment:
            self._adjust_measurement()
        else:
            self.z = self.measured_vector.copy()
            self.measured_vector[:] = 0.0
        self.u = self.control_vector.copy()

    def xhat_minus_update(self) -> None:
        """Equation 1: predict the state."""
        if self.skip_eq1:
            return
        if self.u_size > 0:
            self.xhatminus = self.F @ self.xhat + self.B @ self.u
        else:
            self.xhatminus = self.F @ self.xhat

    def p_minus_update(self) -> None:
        """Equation 2: predict the covariance."""
        if self.skip_eq2:
            return
        self.FT = self.F.T.copy()
        self.Pminus = self.F @ self.P @ self.FT + self.Q

    def set_k(self) -> None:
        """Equation 3: compute the Kalman gain.

        Raises ``numpy.linalg.LinAlgError`` when the innovation covariance is
        singular.
        """
        if self.skip_eq3:
            return
        self.HT = self.H.T.copy()
        self.S = self.H @ self.Pminus @ self.HT + self.R
        self.K = self.Pminus @ self.HT @ np.linalg.inv(self.S)

    def xhat_update(self) -> None:
        """Equation 4: fuse the measurement into the state."""
        if self.skip_eq4:
            return
        innovation = self.z - self.H @ self.xhatminus
        self.xhat = self.xhatminus + self.K @ innovation

    def p_update(self) -> None:
        """Equation 5: correct the covariance."""
        if self.skip_eq5:
            return
        self.P = self.Pminus - self.K @ self.H @ self.Pminus

    def update(self) -> np.ndarray:
        """Run one full filter cycle and return a copy of the filtered state."""
        self.measure()
        self._run_hook(0)

        self.xhat_minus_update()
        self._run_hook(1)

        self.p_minus_update()
        self._run_hook(2)

        if self.measurement_valid_num != 0 or not self.use_auto_adjustment:
            self.set_k()
            self._run_hook(3)

            self.xhat_update()
            self._run_hook(4)

            self.p_update()
        else:
            self.xhat = self.xhatminus.copy()
            self.P = self.Pminus.copy()

        self._run_hook(5)

        diagonal = np.diag(self.P)
        clamped = np.maximum(diagonal, self.state_min_variance)
        np.fill_diagonal(self.P, clamped)

        self.filtered_value = self.xhat.copy()

        self._run_hook(6)

        return self.filtered_value.copy()