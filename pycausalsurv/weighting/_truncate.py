"""
Quantile truncation of weights.

Weights are clamped to [Q(qlo), Q(qhi)] where Q is the inverse of the
empirical CDF (an order statistic, no interpolation). Clamping maps order
statistics onto order statistics, so Q(qlo) and Q(qhi) of the truncated
weights are the same two values and a second truncation changes nothing.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def quantile_bounds(weights: NDArray, lower: float, upper: float) -> tuple[float, float]:
    """Order-statistic quantiles (Q(lower), Q(upper))."""
    lo, hi = np.quantile(weights, [lower, upper], method="inverted_cdf")
    return float(lo), float(hi)


def clamp_weights(weights: NDArray, lower: float, upper: float) -> tuple[NDArray, tuple[float, float]]:
    """Clamp to the quantile bounds; returns (weights, (lo, hi))."""
    bounds = quantile_bounds(weights, lower, upper)
    return np.clip(weights, bounds[0], bounds[1]), bounds
