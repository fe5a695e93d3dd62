"""
Public API for exposure weighting.

    estimate_weights(intervals, exposure=..., covariates=...) → WeightSolution
    truncate_weights(weights, lower, upper) → WeightSolution or ndarray
"""

from __future__ import annotations

import warnings
from dataclasses import replace
from typing import Sequence

import numpy as np
import pandas as pd

from pycausalsurv.core.compute.timing import Timer
from pycausalsurv.core.covariates import CovariateSpec
from pycausalsurv.core.exceptions import ConfigError
from pycausalsurv.core.result import Result
from pycausalsurv.core.validation import check_array, check_quantile_bounds, check_weights
from pycausalsurv.weighting._balance import balance_statistic, weighted_correlation
from pycausalsurv.weighting._balancing import CovariateBalancing
from pycausalsurv.weighting._boosted import BoostedDensityRatio
from pycausalsurv.weighting._common import WeightingStrategy, WeightParams
from pycausalsurv.weighting._truncate import clamp_weights
from pycausalsurv.weighting.design import WeightDesign
from pycausalsurv.weighting.solution import WeightSolution


def _resolve_strategy(strategy, threshold: float, stop_method: str,
                      random_state: int | None) -> WeightingStrategy:
    if isinstance(strategy, str):
        if strategy == "boosted":
            return BoostedDensityRatio(threshold=threshold, stop_method=stop_method,
                                       random_state=random_state)
        if strategy == "balancing":
            return CovariateBalancing(threshold=threshold, stop_method=stop_method)
        raise ConfigError(
            f"strategy must be 'boosted', 'balancing' or a WeightingStrategy, "
            f"got {strategy!r}",
            option="strategy", value=strategy,
        )
    if not isinstance(strategy, WeightingStrategy):
        raise ConfigError(
            f"strategy must provide estimate(exposure, X), got {type(strategy).__name__}",
            option="strategy", value=strategy,
        )
    return strategy


def estimate_weights(
    intervals,
    *,
    exposure: str = "fluids_cumulative",
    covariates: CovariateSpec | Sequence[str] = ("severity",),
    strategy="boosted",
    threshold: float = 0.1,
    stop_method: str = "mean",
    cumulative: bool = False,
    random_state: int | None = 0,
) -> WeightSolution:
    """Stabilised inverse-probability weights for a continuous exposure.

    Parameters
    ----------
    intervals : IntervalSolution or column mapping
        Interval dataset with complete exposure and confounder values.
    exposure : str
        Exposure column (default the cumulative fluid balance).
    covariates : CovariateSpec or sequence of str
        Confounders to balance.
    strategy : str or WeightingStrategy
        "boosted" (BoostedDensityRatio), "balancing" (CovariateBalancing)
        or a configured strategy instance.
    threshold : float
        Balance threshold used when ``strategy`` is given by name.
    stop_method : str
        "mean" or "max" absolute weighted correlation, when by name.
    cumulative : bool
        Multiply the interval weights cumulatively within each subject.
    random_state : int or None
        Seed for the boosted strategy, when by name.

    Returns
    -------
    WeightSolution

    Raises
    ------
    MalformedCohort
        Missing or non-finite exposure or confounder values.
    BalanceNotAchieved
        The strategy could not meet its balance threshold.
    InvalidWeight
        The strategy produced negative or non-finite weights.
    """
    if not isinstance(covariates, CovariateSpec):
        covariates = CovariateSpec.from_columns(*covariates)
    strat = _resolve_strategy(strategy, threshold, stop_method, random_state)
    design = WeightDesign.from_intervals(intervals, exposure, covariates)

    timer = Timer()
    timer.start()

    with timer.section('strategy'):
        fit = strat.estimate(design.exposure, design.X)

    raw = np.asarray(fit.weights, dtype=np.float64)
    check_weights(raw, f"{strat.name} weights")

    with timer.section('balance'):
        if cumulative:
            final = (
                pd.Series(raw)
                .groupby(pd.factorize(design.pt, sort=False)[0], sort=False)
                .cumprod()
                .to_numpy()
            )
            check_weights(final, "cumulative weights")
        else:
            final = raw
        weighted = weighted_correlation(design.exposure, design.X, final)
        stat = balance_statistic(weighted, strat.stop_method)

    timer.stop()

    params = WeightParams(
        pt=design.pt,
        day=design.day,
        weights=final,
        raw_weights=raw,
        exposure=design.exposure,
        X=design.X,
        names=design.names,
        exposure_name=design.exposure_name,
        unweighted_correlation=weighted_correlation(design.exposure, design.X),
        weighted_correlation=weighted,
        statistic=stat,
        stop_method=strat.stop_method,
        threshold=strat.threshold,
        strategy=strat.name,
        n_iter=fit.n_iter,
        converged=fit.converged,
        cumulative=cumulative,
        truncation=None,
        bounds=None,
    )

    warnings_list = []
    if stat > strat.threshold:
        label = "cumulative weights" if cumulative else "weights"
        warnings_list.append(
            f"{label} have {strat.stop_method} |weighted correlation| "
            f"{stat:.4g} above the threshold {strat.threshold}"
        )
        warnings.warn(warnings_list[-1], RuntimeWarning, stacklevel=2)

    result = Result(
        params=params,
        info={
            "method": repr(strat),
            "exposure": design.exposure_name,
            "n_iter": fit.n_iter,
            "converged": fit.converged,
        },
        timing=timer.result(),
        backend_name=f"cpu_{strat.name}",
        warnings=tuple(warnings_list),
    )

    return WeightSolution(_result=result)


def truncate_weights(weights, lower: float = 0.01, upper: float = 0.99):
    """Clamp weights to their (lower, upper) order-statistic quantiles.

    Parameters
    ----------
    weights : WeightSolution or array-like
        Weights to truncate.
    lower, upper : float
        Quantile levels with 0 < lower < upper < 1.

    Returns
    -------
    WeightSolution or ndarray
        Same kind as the input. A WeightSolution keeps its records and has
        its balance diagnostics recomputed on the truncated weights.

    Raises
    ------
    ConfigError
        Quantile levels out of range or not strictly ordered, e.g.
        (0.5, 0.5).
    InvalidWeight
        Negative or non-finite input weights.
    """
    check_quantile_bounds(lower, upper, name="truncation_quantiles")

    if not isinstance(weights, WeightSolution):
        w = check_array(weights, "weights").ravel()
        check_weights(w)
        return clamp_weights(w, lower, upper)[0]

    p = weights.params
    timer = Timer()
    timer.start()
    clamped, bounds = clamp_weights(p.weights, lower, upper)
    weighted = weighted_correlation(p.exposure, p.X, clamped)
    stat = balance_statistic(weighted, p.stop_method)
    timer.stop()

    params = replace(
        p,
        weights=clamped,
        weighted_correlation=weighted,
        statistic=stat,
        truncation=(float(lower), float(upper)),
        bounds=bounds,
    )

    warnings_list = list(weights.warnings)
    if stat > p.threshold:
        warnings_list.append(
            f"truncated weights have {p.stop_method} |weighted correlation| "
            f"{stat:.4g} above the threshold {p.threshold}"
        )
        warnings.warn(warnings_list[-1], RuntimeWarning, stacklevel=2)

    result = Result(
        params=params,
        info={**weights._result.info, "truncation": (float(lower), float(upper))},
        timing=timer.result(),
        backend_name=weights._result.backend_name,
        warnings=tuple(warnings_list),
    )
    return WeightSolution(_result=result)
