"""
Covariate balance for a continuous exposure.

Balance is measured by the weighted Pearson correlation between the exposure
and each confounder. Perfectly balancing weights make every correlation
zero; the summary statistic is the mean (or max) absolute correlation.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

STOP_METHODS = ("mean", "max")


def weighted_correlation(a: NDArray, X: NDArray, w: NDArray | None = None) -> NDArray:
    """(p,) weighted Pearson correlation of ``a`` with each column of ``X``.

    Columns that are constant under the weights have correlation 0.
    """
    if w is None:
        w = np.ones(len(a))
    w = w / np.sum(w)
    a_c = a - w @ a
    X_c = X - w @ X
    cov = (w * a_c) @ X_c
    var_a = w @ (a_c * a_c)
    var_x = w @ (X_c * X_c)
    denom = np.sqrt(var_a * var_x)
    return np.divide(cov, denom, out=np.zeros_like(cov), where=denom > 0)


def balance_statistic(corr: NDArray, stop_method: str = "mean") -> float:
    """Summarise absolute correlations into one number."""
    abs_corr = np.abs(corr)
    if stop_method == "max":
        return float(np.max(abs_corr))
    return float(np.mean(abs_corr))
