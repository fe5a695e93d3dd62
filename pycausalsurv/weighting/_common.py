"""
Parameter payloads for exposure weighting results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from numpy.typing import NDArray


@dataclass(frozen=True)
class StrategyFit:
    """Raw output of a weighting strategy on one (exposure, covariates) set."""

    weights: NDArray             # (n,) stabilised weights
    statistic: float             # balance statistic reached by ``weights``
    n_iter: int                  # selected boosting stage / dual iterations
    converged: bool


@dataclass(frozen=True)
class WeightParams:
    """Exposure weights with balance diagnostics, one row per interval."""

    pt: NDArray                  # (n,) subject identifiers
    day: NDArray                 # (n,) interval stop
    weights: NDArray             # (n,) final weights
    raw_weights: NDArray         # (n,) strategy weights before products/truncation
    exposure: NDArray            # (n,) exposure used for balance checks
    X: NDArray                   # (n, p) confounders used for balance checks
    names: tuple[str, ...]       # confounder names
    exposure_name: str
    unweighted_correlation: NDArray  # (p,) Pearson corr(exposure, x_j)
    weighted_correlation: NDArray    # (p,) weighted corr with final weights
    statistic: float             # mean or max |weighted_correlation|
    stop_method: str             # "mean" or "max"
    threshold: float
    strategy: str
    n_iter: int
    converged: bool
    cumulative: bool
    truncation: tuple[float, float] | None  # (qlo, qhi) when truncated
    bounds: tuple[float, float] | None      # clamp values when truncated


@runtime_checkable
class WeightingStrategy(Protocol):
    """Estimator of stabilised weights for a continuous exposure."""

    name: str
    threshold: float
    stop_method: str

    def estimate(self, exposure: NDArray, X: NDArray) -> StrategyFit:
        ...
