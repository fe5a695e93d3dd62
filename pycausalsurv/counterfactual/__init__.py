"""
Counterfactual survival and attributable mortality.

Public API:
    evaluate_counterfactual(model, intervals, covariates, assign) -> CounterfactualSolution
    set_to, set_to_quantile, set_to_median, identity   assignments
"""

from pycausalsurv.counterfactual._assign import (
    ColumnOverride,
    identity,
    set_to,
    set_to_median,
    set_to_quantile,
)
from pycausalsurv.counterfactual.solution import CounterfactualSolution
from pycausalsurv.counterfactual.solvers import evaluate_counterfactual

__all__ = [
    "evaluate_counterfactual",
    "CounterfactualSolution",
    "ColumnOverride",
    "identity",
    "set_to",
    "set_to_median",
    "set_to_quantile",
]
