"""
Solution wrapper for counterfactual evaluation.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pycausalsurv.core.result import Result
from pycausalsurv.counterfactual._common import CounterfactualParams


class CounterfactualSolution:
    """Observed versus counterfactual population survival and mortality."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[CounterfactualParams]) -> None:
        self._result = _result

    @property
    def time(self) -> NDArray:
        return self._result.params.time

    @property
    def observed_survival(self) -> NDArray:
        return self._result.params.observed_survival

    @property
    def counterfactual_survival(self) -> NDArray:
        return self._result.params.counterfactual_survival

    @property
    def observed_mortality(self) -> NDArray:
        return self._result.params.observed_mortality

    @property
    def counterfactual_mortality(self) -> NDArray:
        return self._result.params.counterfactual_mortality

    @property
    def attributable_mortality(self) -> NDArray:
        return self._result.params.attributable_mortality

    @property
    def assignment(self) -> str:
        return self._result.info.get("assignment", "")

    @property
    def timing(self):
        return self._result.timing

    def _step(self, values: NDArray, t: ArrayLike) -> NDArray:
        idx = np.searchsorted(self.time, np.asarray(t, dtype=np.float64), side="right") - 1
        return values[np.maximum(idx, 0)]

    def at(self, t: ArrayLike) -> pd.DataFrame:
        """Curves evaluated at arbitrary horizons (right-continuous)."""
        t = np.atleast_1d(np.asarray(t, dtype=np.float64))
        return pd.DataFrame({
            "time": t,
            "observed_survival": self._step(self.observed_survival, t),
            "counterfactual_survival": self._step(self.counterfactual_survival, t),
            "attributable_mortality": self._step(self.attributable_mortality, t),
        })

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "time": self.time,
            "observed_survival": self.observed_survival,
            "counterfactual_survival": self.counterfactual_survival,
            "observed_mortality": self.observed_mortality,
            "counterfactual_mortality": self.counterfactual_mortality,
            "attributable_mortality": self.attributable_mortality,
        })

    def summary(self) -> str:
        p = self._result.params
        lines = [f"Counterfactual evaluation: {self.assignment}", ""]
        lines.append(
            f"  covariates= {', '.join(p.names)}; intervals= {p.n_intervals}; "
            f"weighted= {p.weighted}"
        )
        lines.append("")
        lines.append(
            f"  {'time':>8s}  {'S obs':>10s}  {'S cf':>10s}  {'attributable':>12s}"
        )
        m = len(self.time)
        for i in range(min(m, 20)):
            lines.append(
                f"  {self.time[i]:8.4g}  {self.observed_survival[i]:10.6f}  "
                f"{self.counterfactual_survival[i]:10.6f}  "
                f"{self.attributable_mortality[i]:12.6f}"
            )
        if m > 20:
            lines.append(f"  ... ({m - 20} more rows)")
        return "\n".join(lines)

    def __repr__(self) -> str:
        final = self.attributable_mortality[-1]
        return (
            f"CounterfactualSolution(times={len(self.time)}, "
            f"attributable_at_end={final:.4g})"
        )
