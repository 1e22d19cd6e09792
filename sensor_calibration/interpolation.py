"""
Piecewise-linear interpolation over calibration breakpoints.
"""

from typing import Iterable, Sequence, Tuple

import numpy as np


class LinearInterpolator:
    """
    Callable mapping built once from (x, y) breakpoints.

    Interpolates linearly between the two nearest breakpoints and extrapolates
    with the first/last segment outside the covered range.
    """

    def __init__(self, points: Iterable[Tuple[float, float]]):
        pairs = sorted(((float(x), float(y)) for x, y in points), key=lambda p: p[0])
        if len(pairs) < 2:
            raise ValueError("at least two points are required for interpolation")

        self._xs = np.array([p[0] for p in pairs], dtype=float)
        self._ys = np.array([p[1] for p in pairs], dtype=float)
        self._xs.setflags(write=False)
        self._ys.setflags(write=False)

    @property
    def points(self) -> Sequence[Tuple[float, float]]:
        """Breakpoints in ascending x order."""
        return list(zip(self._xs.tolist(), self._ys.tolist()))

    def _extrapolate(self, x: float, i: int, j: int) -> float:
        x0, x1 = self._xs[i], self._xs[j]
        y0, y1 = self._ys[i], self._ys[j]
        if x1 == x0:
            return float(y0)
        return float(y0 + (x - x0) * (y1 - y0) / (x1 - x0))

    def __call__(self, x: float) -> float:
        x = float(x)
        if x < self._xs[0]:
            return self._extrapolate(x, 0, 1)
        if x > self._xs[-1]:
            return self._extrapolate(x, -1, -2)
        return float(np.interp(x, self._xs, self._ys))
