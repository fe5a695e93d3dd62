"""
Public API for counterfactual evaluation.

    evaluate_counterfactual(model, intervals, covariates, assign) → CounterfactualSolution
"""

from __future__ import annotations

import numpy as np

from pycausalsurv.core.compute.timing import Timer
from pycausalsurv.core.covariates import CovariateSpec
from pycausalsurv.core.exceptions import DimensionError, ValidationError
from pycausalsurv.core.result import Result
from pycausalsurv.core.validation import check_array, check_weights
from pycausalsurv.counterfactual._assign import Assignment
from pycausalsurv.counterfactual._common import CounterfactualParams
from pycausalsurv.counterfactual._evaluate import population_survival
from pycausalsurv.counterfactual.solution import CounterfactualSolution
from pycausalsurv.survival.solution import CoxSolution


def evaluate_counterfactual(
    model: CoxSolution,
    intervals,
    covariates: CovariateSpec,
    assign: Assignment,
    *,
    weights=None,
) -> CounterfactualSolution:
    """Observed and counterfactual survival under a fitted Cox model.

    Parameters
    ----------
    model : CoxSolution
        Fitted (typically IPT-weighted) Cox model.
    intervals : IntervalSolution or column mapping
        Interval dataset with ``start`` and ``stop`` columns.
    covariates : CovariateSpec
        The spec the model was fitted with.
    assign : callable
        Maps ``intervals`` to a column mapping with counterfactual values,
        e.g. ``set_to_median("fluids_cumulative")``.
    weights : WeightSolution, array-like or None
        MSM weights defining the population average. The same weights are
        used for both arms. Default 1.

    Returns
    -------
    CounterfactualSolution

    Raises
    ------
    DimensionError
        The spec does not match the model's covariates.
    """
    if not isinstance(model, CoxSolution):
        raise ValidationError(
            f"model must be a fitted CoxSolution, got {type(model).__name__}"
        )
    if covariates.names != model.names:
        raise DimensionError(
            f"covariates {list(covariates.names)} do not match the model "
            f"covariates {list(model.names)}"
        )

    start = check_array(intervals["start"], "start").ravel()
    stop = check_array(intervals["stop"], "stop").ravel()
    n = len(stop)

    if weights is None:
        w = np.ones(n)
    else:
        w = check_array(getattr(weights, "weights", weights), "weights").ravel()
        check_weights(w)
        if len(w) != n:
            raise DimensionError(f"weights have {len(w)} rows, intervals have {n}")

    timer = Timer()
    timer.start()

    with timer.section('assign'):
        X_obs = covariates.matrix(intervals)
        X_cf = covariates.matrix(assign(intervals))
    for label, X in (("observed", X_obs), ("counterfactual", X_cf)):
        if X.shape[0] != n:
            raise DimensionError(f"{label} covariates have {X.shape[0]} rows, expected {n}")
        if not np.all(np.isfinite(X)):
            raise ValidationError(f"{label} covariates contain non-finite values")

    with timer.section('survival'):
        curves = [
            population_survival(
                start, stop, X, w,
                model.coefficients, model.means,
                model.baseline_time, model.baseline_cumhaz,
            )
            for X in (X_obs, X_cf)
        ]

    timer.stop()

    observed, counterfactual = curves
    params = CounterfactualParams(
        time=np.concatenate(([0.0], model.baseline_time)),
        observed_survival=observed,
        counterfactual_survival=counterfactual,
        observed_mortality=1.0 - observed,
        counterfactual_mortality=1.0 - counterfactual,
        attributable_mortality=(1.0 - observed) - (1.0 - counterfactual),
        names=model.names,
        n_intervals=n,
        weighted=weights is not None,
    )

    result = Result(
        params=params,
        info={
            "method": "marginal Cox survival",
            "assignment": getattr(assign, "__name__", repr(assign)),
        },
        timing=timer.result(),
        backend_name="cpu_counterfactual",
        warnings=(),
    )

    return CounterfactualSolution(_result=result)
