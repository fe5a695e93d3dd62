"""
Solution wrapper for exposure weights.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pycausalsurv.core.result import Result
from pycausalsurv.weighting._common import WeightParams


class WeightSolution:
    """Per-interval exposure weights with balance diagnostics.

    ``weights`` lines up row for row with the IntervalSolution the weights
    were estimated on, so the solution can be passed directly as the
    ``weights`` argument of ``coxph_intervals``.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[WeightParams]) -> None:
        self._result = _result

    @property
    def params(self) -> WeightParams:
        return self._result.params

    @property
    def weights(self) -> NDArray:
        return self._result.params.weights

    @property
    def raw_weights(self) -> NDArray:
        return self._result.params.raw_weights

    @property
    def pt(self) -> NDArray:
        return self._result.params.pt

    @property
    def day(self) -> NDArray:
        return self._result.params.day

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.names

    @property
    def strategy(self) -> str:
        return self._result.params.strategy

    @property
    def statistic(self) -> float:
        """Balance statistic of the final weights."""
        return self._result.params.statistic

    @property
    def threshold(self) -> float:
        return self._result.params.threshold

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def truncation(self) -> tuple[float, float] | None:
        return self._result.params.truncation

    @property
    def bounds(self) -> tuple[float, float] | None:
        return self._result.params.bounds

    @property
    def valid(self) -> bool:
        """Weights are finite, non-negative and meet the balance threshold."""
        w = self.weights
        return bool(
            np.all(np.isfinite(w)) and np.all(w >= 0)
            and self.statistic <= self.threshold
        )

    @property
    def effective_sample_size(self) -> float:
        """Kish's effective sample size (Σw)² / Σw²."""
        w = self.weights
        return float(np.sum(w) ** 2 / np.sum(w * w))

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def timing(self):
        return self._result.timing

    def __len__(self) -> int:
        return len(self.weights)

    def balance_table(self) -> pd.DataFrame:
        """Correlation of the exposure with each confounder, before and after."""
        p = self._result.params
        return pd.DataFrame({
            "covariate": list(p.names),
            "unweighted": p.unweighted_correlation,
            "weighted": p.weighted_correlation,
        })

    def to_frame(self) -> pd.DataFrame:
        """Weight records (pt, day, weight) with the balance flag ``valid``."""
        return pd.DataFrame({
            "pt": self.pt,
            "day": self.day,
            "weight": self.weights,
            "valid": self.valid,
        })

    def summary(self) -> str:
        p = self._result.params
        w = self.weights
        lines = [f"Exposure weights: {p.strategy} (exposure: {p.exposure_name})", ""]
        lines.append(
            f"  n= {len(w)}, effective n= {self.effective_sample_size:.1f}, "
            f"cumulative= {p.cumulative}"
        )
        lines.append(
            f"  weights: min= {np.min(w):.4g}, mean= {np.mean(w):.4g}, "
            f"max= {np.max(w):.4g}"
        )
        if p.truncation is not None:
            lines.append(
                f"  truncated at quantiles {p.truncation} -> "
                f"[{p.bounds[0]:.4g}, {p.bounds[1]:.4g}]"
            )
        lines.append("")
        lines.append(f"  {'':>18s}  {'unweighted':>10s}  {'weighted':>10s}")
        for name, u, v in zip(p.names, p.unweighted_correlation, p.weighted_correlation):
            lines.append(f"  {name:>18s}  {u:10.4f}  {v:10.4f}")
        lines.append("")
        lines.append(
            f"  {p.stop_method} |corr| = {p.statistic:.4g} "
            f"(threshold {p.threshold}), valid= {self.valid}"
        )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"WeightSolution(strategy={self.strategy!r}, n={len(self)}, "
            f"statistic={self.statistic:.4g}, valid={self.valid})"
        )
