"""
Solution wrappers for survival analysis results.

Each Solution wraps a Result[Params] and exposes user-friendly properties
with R-style summary() methods. CoxSolution is the fitted model threaded
into the counterfactual stage.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from pycausalsurv.core.exceptions import DimensionError
from pycausalsurv.core.result import Result
from pycausalsurv.survival._common import CoxParams, FineGrayParams, KMParams
from pycausalsurv.survival._km import survival_at


class KMSolution:
    """Kaplan-Meier survival curve solution.

    Properties mirror R's survfit() output.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[KMParams]) -> None:
        self._result = _result

    @property
    def time(self):
        """Unique event times."""
        return self._result.params.time

    @property
    def survival(self):
        """S(t) at each event time."""
        return self._result.params.survival

    @property
    def n_risk(self):
        return self._result.params.n_risk

    @property
    def n_events(self):
        return self._result.params.n_events

    @property
    def n_censored(self):
        return self._result.params.n_censored

    @property
    def se(self):
        """Greenwood standard error of S(t)."""
        return self._result.params.se

    @property
    def ci_lower(self):
        return self._result.params.ci_lower

    @property
    def ci_upper(self):
        return self._result.params.ci_upper

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def conf_type(self) -> str:
        return self._result.params.conf_type

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_events_total(self) -> int:
        return self._result.params.n_events_total

    @property
    def median_survival(self) -> float | None:
        """Median survival time (smallest t where S(t) <= 0.5)."""
        idx = self.survival <= 0.5
        if not idx.any():
            return None
        return float(self.time[idx][0])

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    def survival_at(self, t: ArrayLike) -> NDArray:
        """Right-continuous S(t) at arbitrary times."""
        return survival_at(self._result.params, t)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "time": self.time,
            "n_risk": self.n_risk,
            "n_events": self.n_events,
            "survival": self.survival,
            "se": self.se,
            "ci_lower": self.ci_lower,
            "ci_upper": self.ci_upper,
        })

    def summary(self) -> str:
        """R-style summary of Kaplan-Meier fit."""
        lines = ["Call: kaplan_meier()", ""]
        lines.append(
            f"  n={self.n_observations}, events={self.n_events_total}"
        )
        median = self.median_survival
        median_str = f"{median:.4g}" if median is not None else "NA"
        lines.append(f"  median survival = {median_str}")
        lines.append("")

        ci_pct = int(self.conf_level * 100)
        lines.append(
            f"  {'time':>8s}  {'n.risk':>8s}  {'n.event':>8s}  "
            f"{'survival':>10s}  {'se':>10s}  "
            f"{f'lower {ci_pct}%':>10s}  {f'upper {ci_pct}%':>10s}"
        )
        m = len(self.time)
        for i in range(min(m, 20)):
            lines.append(
                f"  {self.time[i]:8.4g}  {self.n_risk[i]:8.0f}  "
                f"{self.n_events[i]:8.0f}  "
                f"{self.survival[i]:10.6f}  {self.se[i]:10.6f}  "
                f"{self.ci_lower[i]:10.6f}  {self.ci_upper[i]:10.6f}"
            )
        if m > 20:
            lines.append(f"  ... ({m - 20} more rows)")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"KMSolution(n={self.n_observations}, "
            f"events={self.n_events_total}, "
            f"median={self.median_survival})"
        )


class CoxSolution:
    """Fitted (weighted) Cox proportional hazards model.

    Properties mirror R's coxph() output. The baseline cumulative hazard is
    stored at the covariate means; ``cumulative_hazard`` evaluates it as a
    right-continuous step function.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[CoxParams]) -> None:
        self._result = _result

    @property
    def params(self) -> CoxParams:
        return self._result.params

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.names

    @property
    def coefficients(self):
        return self._result.params.coefficients

    @property
    def hazard_ratios(self):
        return self._result.params.hazard_ratios

    @property
    def variance(self):
        """Model-based covariance (inverse observed information)."""
        return self._result.params.variance

    @property
    def robust_variance(self):
        return self._result.params.robust_variance

    @property
    def standard_errors(self):
        return self._result.params.standard_errors

    @property
    def z_statistics(self):
        return self._result.params.z_statistics

    @property
    def p_values(self):
        return self._result.params.p_values

    @property
    def ci_lower(self):
        return self._result.params.ci_lower

    @property
    def ci_upper(self):
        return self._result.params.ci_upper

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def loglik(self):
        return self._result.params.loglik

    @property
    def means(self):
        return self._result.params.means

    @property
    def baseline_time(self):
        return self._result.params.baseline_time

    @property
    def baseline_cumhaz(self):
        return self._result.params.baseline_cumhaz

    @property
    def n_events(self) -> int:
        return self._result.params.n_events

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def ties(self) -> str:
        return self._result.params.ties

    @property
    def weighted(self) -> bool:
        return bool(self._result.info.get("weighted", False))

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    def cumulative_hazard(self, t: ArrayLike) -> NDArray:
        """Baseline cumulative hazard at the covariate means, H0(t)."""
        t = np.asarray(t, dtype=np.float64)
        idx = np.searchsorted(self.baseline_time, t, side="right")
        return np.concatenate(([0.0], self.baseline_cumhaz))[idx]

    def linear_predictor(self, X: ArrayLike) -> NDArray:
        """(x - means) @ β for each row of X."""
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.shape[1] != len(self.coefficients):
            raise DimensionError(
                f"X has {X.shape[1]} columns, model has {len(self.coefficients)}"
            )
        return (X - self.means) @ self.coefficients

    def predict_cumulative_hazard(self, X: ArrayLike, t: ArrayLike) -> NDArray:
        """(k, m) cumulative hazard for k static covariate profiles at m times."""
        risk = np.exp(self.linear_predictor(X))
        return risk[:, None] * self.cumulative_hazard(t)[None, :]

    def predict_survival(self, X: ArrayLike, t: ArrayLike) -> NDArray:
        """(k, m) survival exp(-H) for static covariate profiles."""
        return np.exp(-self.predict_cumulative_hazard(X, t))

    def to_frame(self) -> pd.DataFrame:
        """Coefficient table with a convergence flag on every row."""
        return pd.DataFrame({
            "name": list(self.names),
            "estimate": self.coefficients,
            "std_error": self.standard_errors,
            "hazard_ratio": self.hazard_ratios,
            "ci_lower": np.exp(self.ci_lower),
            "ci_upper": np.exp(self.ci_upper),
            "z": self.z_statistics,
            "p_value": self.p_values,
            "converged": self.converged,
        })

    def summary(self) -> str:
        """R-style summary of Cox PH fit."""
        lines = ["Call: coxph()", ""]
        lines.append(
            f"  n= {self.n_observations}, "
            f"number of events= {self.n_events}"
            + (" (weighted)" if self.weighted else "")
        )
        lines.append("")

        se_label = "robust se" if self.robust_variance is not None else "se(coef)"
        lines.append(
            f"  {'':>18s}  {'coef':>10s}  {'exp(coef)':>10s}  "
            f"{se_label:>10s}  {'z':>10s}  {'Pr(>|z|)':>12s}"
        )
        for i, name in enumerate(self.names):
            lines.append(
                f"  {name:>18s}  {self.coefficients[i]:10.6f}  "
                f"{self.hazard_ratios[i]:10.6f}  "
                f"{self.standard_errors[i]:10.6f}  "
                f"{self.z_statistics[i]:10.4f}  "
                f"{self.p_values[i]:12.4g}"
            )

        ci_pct = int(round(self.conf_level * 100))
        lines.append("")
        lines.append(
            f"  {'':>18s}  {'exp(coef)':>10s}  "
            f"{f'lower .{ci_pct}':>10s}  {f'upper .{ci_pct}':>10s}"
        )
        for i, name in enumerate(self.names):
            lines.append(
                f"  {name:>18s}  {self.hazard_ratios[i]:10.6f}  "
                f"{np.exp(self.ci_lower[i]):10.6f}  "
                f"{np.exp(self.ci_upper[i]):10.6f}"
            )

        lr_stat = 2 * (self.loglik[1] - self.loglik[0])
        lines.append("")
        lines.append(
            f"  Likelihood ratio test= {lr_stat:.4f} on {len(self.names)} df"
        )
        lines.append(
            f"  Converged in {self.n_iter} iterations, ties= {self.ties}"
        )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"CoxSolution(n={self.n_observations}, "
            f"events={self.n_events}, "
            f"converged={self.converged})"
        )


class FineGraySolution:
    """Fitted Fine-Gray subdistribution hazard model."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[FineGrayParams]) -> None:
        self._result = _result

    @property
    def params(self) -> FineGrayParams:
        return self._result.params

    @property
    def model(self) -> CoxSolution:
        """The weighted Cox fit on the expanded risk sets."""
        return CoxSolution(_result=Result(
            params=self._result.params.cox,
            info={**self._result.info, "weighted": True},
            timing=self._result.timing,
            backend_name=self._result.backend_name,
            warnings=self._result.warnings,
        ))

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.params.cox.names

    @property
    def coefficients(self):
        return self._result.params.cox.coefficients

    @property
    def subdistribution_hazard_ratios(self):
        return self._result.params.cox.hazard_ratios

    @property
    def hazard_ratios(self):
        return self._result.params.cox.hazard_ratios

    @property
    def standard_errors(self):
        return self._result.params.cox.standard_errors

    @property
    def p_values(self):
        return self._result.params.cox.p_values

    @property
    def ci_lower(self):
        return self._result.params.cox.ci_lower

    @property
    def ci_upper(self):
        return self._result.params.cox.ci_upper

    @property
    def converged(self) -> bool:
        return self._result.params.cox.converged

    @property
    def n_subjects(self) -> int:
        return self._result.params.n_subjects

    @property
    def n_target(self) -> int:
        return self._result.params.n_target

    @property
    def n_competing(self) -> int:
        return self._result.params.n_competing

    @property
    def n_censored(self) -> int:
        return self._result.params.n_censored

    @property
    def n_expanded(self) -> int:
        return self._result.params.n_expanded

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    def cumulative_incidence(self, X: ArrayLike, t: ArrayLike) -> NDArray:
        """(k, m) cumulative incidence 1 - exp(-H_sub) of the target event."""
        return 1.0 - self.model.predict_survival(X, t)

    def to_frame(self) -> pd.DataFrame:
        frame = self.model.to_frame()
        return frame.rename(columns={"hazard_ratio": "subdistribution_hr"})

    def summary(self) -> str:
        fg = self._result.params
        lines = ["Call: finegray()", ""]
        lines.append(
            f"  subjects= {fg.n_subjects}, target events= {fg.n_target}, "
            f"competing events= {fg.n_competing}, censored= {fg.n_censored}"
        )
        lines.append(f"  expanded rows= {fg.n_expanded}")
        lines.append("")
        lines.append(
            f"  {'':>18s}  {'coef':>10s}  {'exp(coef)':>10s}  "
            f"{'robust se':>10s}  {'Pr(>|z|)':>12s}"
        )
        for i, name in enumerate(self.names):
            lines.append(
                f"  {name:>18s}  {self.coefficients[i]:10.6f}  "
                f"{self.hazard_ratios[i]:10.6f}  "
                f"{self.standard_errors[i]:10.6f}  "
                f"{self.p_values[i]:12.4g}"
            )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"FineGraySolution(n={self.n_subjects}, "
            f"target={self.n_target}, competing={self.n_competing})"
        )
