"""
Marginal survival under a fitted (weighted) Cox model.

For a population of interval rows with covariates x_k(t), the population
hazard increment at each baseline event time t_j is the weighted mean of
the individual increments over the rows at risk,

    dH(t_j) = dΛ0(t_j) · Σ_{k ∈ R_j} w_k exp((x_k - x̄)'β) / Σ_{k ∈ R_j} w_k,

with R_j = {k : start_k < t_j <= stop_k} and w the MSM weights. The
population survival is S(t) = exp(-Σ_{t_j <= t} dH(t_j)). Evaluating it on
observed and on counterfactually assigned covariates uses the same risk
sets and weights, so the two curves differ only through x.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def hazard_increments(
    start: NDArray,
    stop: NDArray,
    relative_risk: NDArray,
    weights: NDArray,
    event_times: NDArray,
    baseline_increments: NDArray,
) -> NDArray:
    """Population hazard increments dH(t_j) at each baseline event time."""
    dH = np.zeros(len(event_times))
    wr = weights * relative_risk
    for j, t in enumerate(event_times):
        at_risk = (start < t) & (stop >= t)
        w_sum = np.sum(weights[at_risk])
        if w_sum > 0:
            dH[j] = baseline_increments[j] * np.sum(wr[at_risk]) / w_sum
    return dH


def population_survival(
    start: NDArray,
    stop: NDArray,
    X: NDArray,
    weights: NDArray,
    beta: NDArray,
    means: NDArray,
    event_times: NDArray,
    baseline_cumhaz: NDArray,
) -> NDArray:
    """(m+1,) survival at 0 and at each event time."""
    relative_risk = np.exp((X - means) @ beta)
    increments = np.diff(baseline_cumhaz, prepend=0.0)
    dH = hazard_increments(start, stop, relative_risk, weights, event_times, increments)
    return np.concatenate(([1.0], np.exp(-np.cumsum(dH))))
