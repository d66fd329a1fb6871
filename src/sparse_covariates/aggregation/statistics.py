"""Distribution statistics over a sparse value vector with implicit zeros.

A covariate's observed values are held sorted; `implicit_zeros` entries of
value 0 are spliced in at their ordered position without materializing them,
so a covariate present for a handful of entries in a cohort of millions costs
only its observed values.
"""

from __future__ import annotations

import math
from typing import Dict

import numpy as np

from ..shared.constants import QUANTILES


def _order_statistic(values: np.ndarray, implicit_zeros: int, negatives: int, k: int) -> float:
    """k-th smallest element of `values` merged with `implicit_zeros` zeros."""
    if k < negatives:
        return float(values[k])
    if k < negatives + implicit_zeros:
        return 0.0
    return float(values[k - implicit_zeros])


def type7_quantile(values: np.ndarray, q: float, implicit_zeros: int = 0) -> float:
    """Linear interpolation between order statistics (R type 7 / numpy 'linear').

    `values` must be sorted ascending.
    """
    n = len(values) + implicit_zeros
    if n == 0:
        return math.nan
    negatives = int(np.searchsorted(values, 0.0, side="left"))
    h = (n - 1) * q
    lo = int(math.floor(h))
    hi = min(lo + 1, n - 1)
    x_lo = _order_statistic(values, implicit_zeros, negatives, lo)
    x_hi = _order_statistic(values, implicit_zeros, negatives, hi)
    return x_lo + (h - lo) * (x_hi - x_lo)


def summarize_values(values: np.ndarray, implicit_zeros: int = 0) -> Dict[str, float]:
    """Count, extremes, mean, sample SD and quantiles of values plus implicit zeros."""
    values = np.sort(np.asarray(values, dtype=np.float64))
    n = len(values) + implicit_zeros
    if n == 0:
        raise ValueError("cannot summarize an empty distribution")

    mean = float(values.sum()) / n
    # Two-pass sum of squares; each implicit zero contributes mean**2
    ss = float(np.sum((values - mean) ** 2)) + implicit_zeros * mean * mean
    sd = math.sqrt(ss / (n - 1)) if n > 1 else 0.0

    lo = float(values[0]) if len(values) else 0.0
    hi = float(values[-1]) if len(values) else 0.0
    if implicit_zeros:
        lo, hi = min(lo, 0.0), max(hi, 0.0)

    stats = {
        "count_value": n,
        "min_value": lo,
        "max_value": hi,
        "average_value": mean,
        "standard_deviation": sd,
    }
    for column, q in QUANTILES.items():
        stats[column] = type7_quantile(values, q, implicit_zeros)
    return stats
