"""
Kaplan-Meier product-limit estimator.

Matches R's survival::survfit(Surv(time, event) ~ 1):
- Product-limit survival estimate: S(t) = ∏(1 - d_j / n_j)
- Greenwood variance: Var(S(t)) = S(t)^2 * Σ(d_j / (n_j * (n_j - d_j)))
- Confidence intervals via log, plain, or log-log transformation

Fine-Gray regression uses it with censoring as the "event" to estimate
the censoring distribution G.

References:
    Kaplan, E. L., & Meier, P. (1958). Nonparametric estimation from
        incomplete observations. JASA, 53(282), 457-481.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pycausalsurv.survival._common import KMParams


def kaplan_meier_fit(
    time: NDArray,
    event: NDArray,
    conf_level: float = 0.95,
    conf_type: str = "log",
) -> KMParams:
    """Compute Kaplan-Meier survival curve.

    Parameters
    ----------
    time : NDArray
        (n,) time to event or censoring.
    event : NDArray
        (n,) event indicator (1=event, 0=censored).
    conf_level : float
        Confidence level for CI (e.g. 0.95).
    conf_type : str
        CI type: "log" (default, matches R), "plain", "log-log".

    Returns
    -------
    KMParams
    """
    n_total = len(time)
    is_event = event == 1
    n_events_total = int(np.sum(is_event))

    unique_event_times = np.unique(time[is_event])
    m = len(unique_event_times)

    if m == 0:
        empty = np.array([], dtype=np.float64)
        return KMParams(
            time=empty, survival=empty, n_risk=empty, n_events=empty,
            n_censored=empty, se=empty, ci_lower=empty, ci_upper=empty,
            conf_level=conf_level, conf_type=conf_type,
            n_observations=n_total, n_events_total=0,
        )

    sorted_time = np.sort(time)
    sorted_cens = np.sort(time[~is_event])
    sorted_evt = np.sort(time[is_event])

    # n_risk: observations with time >= t (ties: events before censoring)
    n_risk = n_total - np.searchsorted(sorted_time, unique_event_times, side="left")
    n_events = (
        np.searchsorted(sorted_evt, unique_event_times, side="right")
        - np.searchsorted(sorted_evt, unique_event_times, side="left")
    ).astype(np.float64)

    # Censored strictly between the previous event time and this one
    prev = np.concatenate(([-np.inf], unique_event_times[:-1]))
    n_censored = (
        np.searchsorted(sorted_cens, unique_event_times, side="left")
        - np.searchsorted(sorted_cens, prev, side="right")
    ).astype(np.float64)
    n_risk = n_risk.astype(np.float64)

    survival = np.cumprod(1.0 - n_events / n_risk)

    # Greenwood: terms with n_risk == n_events make the variance infinite
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = n_events / (n_risk * (n_risk - n_events))
    greenwood = np.cumsum(terms)
    se = survival * np.sqrt(greenwood)

    ci_lower, ci_upper = _confidence_band(survival, greenwood, conf_level, conf_type)

    return KMParams(
        time=unique_event_times,
        survival=survival,
        n_risk=n_risk,
        n_events=n_events,
        n_censored=n_censored,
        se=se,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        conf_level=conf_level,
        conf_type=conf_type,
        n_observations=n_total,
        n_events_total=n_events_total,
    )


def _confidence_band(
    survival: NDArray, greenwood: NDArray, conf_level: float, conf_type: str
) -> tuple[NDArray, NDArray]:
    z = stats.norm.ppf(0.5 + conf_level / 2.0)
    sd_log = np.sqrt(greenwood)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        if conf_type == "log":
            lower = survival * np.exp(-z * sd_log)
            upper = survival * np.exp(z * sd_log)
        elif conf_type == "plain":
            se = survival * sd_log
            lower = survival - z * se
            upper = survival + z * se
        else:  # log-log
            log_s = np.log(survival)
            theta = z * sd_log / log_s
            lower = survival ** np.exp(-theta)
            upper = survival ** np.exp(theta)

    lower = np.where(survival > 0, lower, 0.0)
    upper = np.where(survival > 0, upper, 0.0)
    lower = np.clip(np.nan_to_num(lower, nan=0.0), 0.0, 1.0)
    upper = np.clip(np.nan_to_num(upper, nan=1.0), 0.0, 1.0)
    return lower, upper


def survival_left_limit(params: KMParams, t: NDArray) -> NDArray:
    """S(t-): survival just before each time in ``t``."""
    idx = np.searchsorted(params.time, np.asarray(t, dtype=np.float64), side="left")
    surv = np.concatenate(([1.0], params.survival))
    return surv[idx]


def survival_at(params: KMParams, t: NDArray) -> NDArray:
    """S(t): right-continuous survival at each time in ``t``."""
    idx = np.searchsorted(params.time, np.asarray(t, dtype=np.float64), side="right")
    surv = np.concatenate(([1.0], params.survival))
    return surv[idx]
