"""
Parameter payloads for survival analysis results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class KMParams:
    """Kaplan-Meier survival curve parameters.

    Matches the output of R's survival::survfit().
    """

    time: NDArray                # (m,) unique event times
    survival: NDArray            # (m,) S(t) at each event time
    n_risk: NDArray              # (m,) number at risk just before each time
    n_events: NDArray            # (m,) events at each time
    n_censored: NDArray          # (m,) censored strictly between previous and this time
    se: NDArray                  # (m,) Greenwood standard error
    ci_lower: NDArray            # (m,) lower CI for S(t)
    ci_upper: NDArray            # (m,) upper CI for S(t)
    conf_level: float
    conf_type: str               # "log", "plain" or "log-log"
    n_observations: int
    n_events_total: int


@dataclass(frozen=True)
class CoxParams:
    """Cox proportional hazards model parameters.

    Counting-process, optionally weighted fit. Matches the output of
    R's survival::coxph(Surv(start, stop, event) ~ ..., weights=w).
    """

    names: tuple[str, ...]       # covariate names, model order
    coefficients: NDArray        # (p,) log hazard ratios
    hazard_ratios: NDArray       # (p,) exp(coef)
    variance: NDArray            # (p, p) inverse observed information
    robust_variance: NDArray | None  # (p, p) sandwich estimate, clustered
    standard_errors: NDArray     # (p,) robust if computed, else model-based
    z_statistics: NDArray        # (p,) coef / se
    p_values: NDArray            # (p,) two-sided Wald test
    ci_lower: NDArray            # (p,) Wald CI for coef
    ci_upper: NDArray            # (p,)
    conf_level: float
    loglik: tuple[float, float]  # (null log-lik, model log-lik)
    score_norm: float            # max |score| at the final iterate
    means: NDArray               # (p,) centering used by the baseline hazard
    baseline_time: NDArray       # (m,) distinct target event times
    baseline_cumhaz: NDArray     # (m,) cumulative baseline hazard at means
    n_events: int
    weighted_events: float
    n_observations: int
    n_clusters: int | None
    n_iter: int
    converged: bool
    ties: str                    # "efron" or "breslow"
    target: int                  # event-type code treated as the event


@dataclass(frozen=True)
class FineGrayParams:
    """Fine-Gray subdistribution hazard model parameters.

    The regression itself is a weighted counting-process Cox fit on the
    expanded data; ``cox`` holds it.
    """

    cox: CoxParams
    n_subjects: int
    n_target: int                # subjects with the target event
    n_competing: int             # subjects with the competing event
    n_censored: int
    n_expanded: int              # rows after risk-set expansion
    target: int
    competing: int
    censoring_time: NDArray      # (k,) censoring distribution jump times
    censoring_survival: NDArray  # (k,) G(t) at those times
