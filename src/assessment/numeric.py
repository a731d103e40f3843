from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def round_half_up(n: float) -> int:
    return int(math.floor(n + 0.5))


def simple_regression(x: Sequence[float], y: Sequence[float]) -> tuple[float, float]:
    """Ordinary least squares fit of ``y`` on ``x``.

    Returns ``(slope, intercept)``. The slope is 0 when there is no data or
    when ``x`` has no variance.
    """
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    if xs.size == 0:
        return 0.0, 0.0
    mx = xs.mean()
    my = ys.mean()
    dx = xs - mx
    var_x = float(np.sum(dx**2))
    slope = 0.0 if var_x == 0 else float(np.sum(dx * (ys - my)) / var_x)
    return slope, float(my - slope * mx)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear-interpolation percentile at position ``(n - 1) * p``; NaN when empty."""
    values = np.asarray(sorted_values, dtype=float)
    if values.size == 0:
        return math.nan
    pos = (values.size - 1) * p
    base = int(math.floor(pos))
    if base + 1 >= values.size:
        return float(values[base])
    return float(values[base] + (values[base + 1] - values[base]) * (pos - base))


def number_to_usd(n: float | None) -> str:
    if n is None or not math.isfinite(n) or n <= 0:
        return "N/A"
    return f"${round_half_up(n):,}"
