"""
Public API for survival analysis.

    kaplan_meier(time, event) → KMSolution
    coxph(time, event, X) → CoxSolution
    coxph_intervals(intervals, covariates) → CoxSolution
    finegray(time, event_type, X) → FineGraySolution
    finegray_subjects(subjects, covariates) → FineGraySolution

Each function validates inputs, creates a design, runs the fit and wraps the
Result in a Solution.
"""

from __future__ import annotations

from typing import Literal

import numpy as np

from pycausalsurv.core.compute.timing import Timer
from pycausalsurv.core.covariates import CovariateSpec
from pycausalsurv.core.exceptions import (
    ConfigError, InsufficientEvents, MalformedCohort, ValidationError,
)
from pycausalsurv.core.result import Result
from pycausalsurv.core.validation import check_array, check_finite
from pycausalsurv.survival._common import FineGrayParams
from pycausalsurv.survival._cox import cox_fit
from pycausalsurv.survival._finegray import expand_risk_sets
from pycausalsurv.survival._km import kaplan_meier_fit
from pycausalsurv.survival.design import CoxDesign
from pycausalsurv.survival.solution import CoxSolution, FineGraySolution, KMSolution


def _check_options(conf_level: float, ties: str | None = None,
                   min_events: int | None = None) -> None:
    if not 0 < conf_level < 1:
        raise ConfigError(
            f"conf_level must be in (0, 1), got {conf_level}",
            option="conf_level", value=conf_level,
        )
    if ties is not None and ties not in ("efron", "breslow"):
        raise ConfigError(
            f"ties must be 'efron' or 'breslow', got '{ties}'",
            option="ties", value=ties,
        )
    if min_events is not None and min_events < 1:
        raise ConfigError(
            f"min_events must be >= 1, got {min_events}",
            option="min_events", value=min_events,
        )


def _weight_values(weights):
    """Accept a plain array or anything carrying a ``weights`` array."""
    if weights is None:
        return None
    return getattr(weights, "weights", weights)


def kaplan_meier(
    time,
    event,
    *,
    conf_level: float = 0.95,
    conf_type: Literal["log", "plain", "log-log"] = "log",
) -> KMSolution:
    """Kaplan-Meier survival curve estimation.

    Matches R's survival::survfit(Surv(time, event) ~ 1).

    Parameters
    ----------
    time : array-like
        Time to event or censoring.
    event : array-like
        Event indicator (1=event, 0=censored).
    conf_level : float
        Confidence level for CI (default 0.95).
    conf_type : str
        CI transformation: "log" (R default), "plain", "log-log".

    Returns
    -------
    KMSolution
    """
    time_arr = check_array(time, "time").ravel()
    event_arr = check_array(event, "event").ravel()
    check_finite(time_arr, "time")
    check_finite(event_arr, "event")
    if len(time_arr) == 0:
        raise ValidationError("time must have at least one observation")
    if len(time_arr) != len(event_arr):
        raise MalformedCohort(
            f"event has {len(event_arr)} elements, time has {len(time_arr)}"
        )
    if not np.all(np.isin(event_arr, (0.0, 1.0))):
        raise MalformedCohort("event must contain only 0 and 1")

    _check_options(conf_level)
    if conf_type not in ("log", "plain", "log-log"):
        raise ConfigError(
            f"conf_type must be 'log', 'plain', or 'log-log', got '{conf_type}'",
            option="conf_type", value=conf_type,
        )

    timer = Timer()
    timer.start()

    params = kaplan_meier_fit(
        time_arr, event_arr,
        conf_level=conf_level,
        conf_type=conf_type,
    )

    timer.stop()

    result = Result(
        params=params,
        info={"method": "Kaplan-Meier"},
        timing=timer.result(),
        backend_name="cpu_km",
        warnings=(),
    )

    return KMSolution(_result=result)


def coxph(
    time,
    event,
    X,
    *,
    start=None,
    weights=None,
    target: int = 1,
    cluster=None,
    names=None,
    ties: Literal["efron", "breslow"] = "efron",
    tol: float = 1e-9,
    max_iter: int = 25,
    robust: bool | None = None,
    conf_level: float = 0.95,
    min_events: int = 1,
) -> CoxSolution:
    """Weighted counting-process Cox proportional hazards model.

    Matches R's survival::coxph(Surv(start, stop, event) ~ X,
    weights = w, cluster = id).

    Parameters
    ----------
    time : array-like
        Interval stop (event or censoring time).
    event : array-like
        Event-type codes; ``target`` marks the event of interest.
    X : array-like
        Covariate matrix (n, p). No intercept.
    start : array-like or None
        Interval start for left truncation / time-varying covariates.
    weights : array-like, WeightSolution or None
        Non-negative case weights (e.g. IPTW). Default 1.
    target : int
        Event-type code of interest (default 1, death).
    cluster : array-like or None
        Cluster labels for the sandwich variance.
    names : sequence of str or None
        Covariate names.
    ties : str
        "efron" (default) or "breslow".
    tol : float
        Newton-Raphson convergence tolerance.
    max_iter : int
        Newton-Raphson iteration budget.
    robust : bool or None
        Report the sandwich variance. None means robust whenever
        weights or clusters are supplied (as R does for weighted fits).
    conf_level : float
        Confidence level of the Wald intervals.
    min_events : int
        Minimum number of target events.

    Returns
    -------
    CoxSolution

    Raises
    ------
    ConfigError
        Unknown ``ties``, ``min_events`` or ``max_iter`` below 1, or a
        non-positive ``tol``.
    InsufficientEvents
        Fewer than ``min_events`` target events.
    NonConvergence
        Newton-Raphson failed to converge.
    """
    _check_options(conf_level, ties, min_events)
    if max_iter < 1:
        raise ConfigError(f"max_iter must be >= 1, got {max_iter}",
                          option="max_iter", value=max_iter)
    if not tol > 0:
        raise ConfigError(f"tol must be positive, got {tol}", option="tol", value=tol)

    w = _weight_values(weights)
    design = CoxDesign.for_counting_process(
        time, event, X,
        start=start, weights=w, cluster=cluster, target=target, names=names,
    )

    if robust is None:
        robust = weights is not None or cluster is not None

    timer = Timer()
    timer.start()

    with timer.section('newton_raphson'):
        params = cox_fit(
            design.start, design.stop, design.event, design.X, design.weights,
            cluster=design.cluster,
            names=design.names,
            ties=ties,
            tol=tol,
            max_iter=max_iter,
            robust=robust,
            conf_level=conf_level,
            min_events=min_events,
            target=target,
        )

    timer.stop()

    result = Result(
        params=params,
        info={
            "method": "Cox PH",
            "ties": ties,
            "n_iter": params.n_iter,
            "converged": params.converged,
            "weighted": weights is not None,
            "robust": robust,
        },
        timing=timer.result(),
        backend_name="cpu_cox",
        warnings=(),
    )

    return CoxSolution(_result=result)


def coxph_intervals(
    intervals,
    covariates: CovariateSpec,
    *,
    weights=None,
    target: int = 1,
    ties: Literal["efron", "breslow"] = "efron",
    tol: float = 1e-9,
    max_iter: int = 25,
    robust: bool | None = None,
    conf_level: float = 0.95,
    min_events: int = 1,
) -> CoxSolution:
    """Cox model on an IntervalSolution, clustered on subject.

    The covariate matrix is resolved through ``covariates``; rows enter the
    risk sets on (start, stop] and the robust variance is clustered on
    ``pt``.
    """
    X = covariates.matrix(intervals)
    w = _weight_values(weights)
    if w is not None and len(np.asarray(w)) != len(X):
        raise MalformedCohort(
            f"weights have {len(np.asarray(w))} rows, intervals have {len(X)}"
        )
    return coxph(
        intervals["stop"], intervals["event_type"], X,
        start=intervals["start"],
        weights=weights,
        target=target,
        cluster=intervals["pt"],
        names=covariates.names,
        ties=ties,
        tol=tol,
        max_iter=max_iter,
        robust=True if robust is None else robust,
        conf_level=conf_level,
        min_events=min_events,
    )


def finegray(
    time,
    event_type,
    X,
    *,
    target: int = 1,
    competing: int = 2,
    names=None,
    ties: Literal["efron", "breslow"] = "efron",
    tol: float = 1e-9,
    max_iter: int = 25,
    conf_level: float = 0.95,
    min_events: int = 5,
) -> FineGraySolution:
    """Fine-Gray subdistribution hazard regression.

    Matches R's survival::finegray() followed by a weighted coxph() with
    a robust variance clustered on subject.

    Parameters
    ----------
    time : array-like
        (n,) event or censoring time per subject, > 0.
    event_type : array-like
        (n,) 0 censored, ``target`` or ``competing``.
    X : array-like
        (n, p) baseline covariates.
    min_events : int
        Minimum number of target events (default 5).

    Returns
    -------
    FineGraySolution

    Raises
    ------
    ConfigError
        ``min_events < 1`` or equal target and competing codes.
    InsufficientEvents
        Fewer than ``min_events`` target events (including none).
    """
    _check_options(conf_level, ties, min_events)
    if target == competing:
        raise ConfigError("target and competing event codes must differ",
                          option="competing", value=competing)

    # Validates shapes and values; the expansion below reuses the arrays
    base = CoxDesign.for_counting_process(time, event_type, X, names=names, target=target)
    codes = check_array(event_type, "event_type").ravel()
    if np.any(base.stop <= 0):
        raise MalformedCohort("finegray requires time > 0 for every subject")
    allowed = np.isin(codes, (0, target, competing))
    if not np.all(allowed):
        bad = np.unique(codes[~allowed])
        raise MalformedCohort(
            f"event_type contains codes {bad.tolist()}; "
            f"expected 0, {target} or {competing}"
        )

    n_target = int(np.sum(codes == target))
    if n_target < max(min_events, 1):
        raise InsufficientEvents(
            f"{n_target} target event(s) observed, at least {min_events} "
            f"required for a Fine-Gray fit",
            n_events=n_target,
            min_events=min_events,
        )

    timer = Timer()
    timer.start()

    with timer.section('expand'):
        expanded = expand_risk_sets(base.stop, codes, base.X, target=target,
                                    competing=competing)

    with timer.section('newton_raphson'):
        cox = cox_fit(
            expanded.start, expanded.stop, expanded.event, expanded.X,
            expanded.weights,
            cluster=expanded.subject,
            names=base.names,
            ties=ties,
            tol=tol,
            max_iter=max_iter,
            robust=True,
            conf_level=conf_level,
            min_events=min_events,
            target=target,
        )

    timer.stop()

    params = FineGrayParams(
        cox=cox,
        n_subjects=base.n,
        n_target=n_target,
        n_competing=int(np.sum(codes == competing)),
        n_censored=int(np.sum(codes == 0)),
        n_expanded=len(expanded.stop),
        target=target,
        competing=competing,
        censoring_time=expanded.censoring.time,
        censoring_survival=expanded.censoring.survival,
    )

    result = Result(
        params=params,
        info={
            "method": "Fine-Gray",
            "ties": ties,
            "n_iter": cox.n_iter,
            "converged": cox.converged,
        },
        timing=timer.result(),
        backend_name="cpu_finegray",
        warnings=(),
    )

    return FineGraySolution(_result=result)


def finegray_subjects(
    subjects,
    covariates: CovariateSpec,
    *,
    target: int = 1,
    competing: int = 2,
    ties: Literal["efron", "breslow"] = "efron",
    tol: float = 1e-9,
    max_iter: int = 25,
    conf_level: float = 0.95,
    min_events: int = 5,
) -> FineGraySolution:
    """Fine-Gray fit on a SubjectSolution (one row per subject)."""
    return finegray(
        subjects["time"], subjects["event_type"], covariates.matrix(subjects),
        target=target,
        competing=competing,
        names=covariates.names,
        ties=ties,
        tol=tol,
        max_iter=max_iter,
        conf_level=conf_level,
        min_events=min_events,
    )
