"""
Exposure weighting for marginal structural models.

Public API:
    estimate_weights(intervals, ...) -> WeightSolution
    truncate_weights(weights, lower, upper) -> WeightSolution | ndarray
    BoostedDensityRatio, CovariateBalancing   weighting strategies
"""

from pycausalsurv.weighting._balance import weighted_correlation
from pycausalsurv.weighting._balancing import CovariateBalancing
from pycausalsurv.weighting._boosted import BoostedDensityRatio
from pycausalsurv.weighting._common import WeightingStrategy
from pycausalsurv.weighting.design import WeightDesign
from pycausalsurv.weighting.solution import WeightSolution
from pycausalsurv.weighting.solvers import estimate_weights, truncate_weights

__all__ = [
    "estimate_weights",
    "truncate_weights",
    "weighted_correlation",
    "BoostedDensityRatio",
    "CovariateBalancing",
    "WeightingStrategy",
    "WeightDesign",
    "WeightSolution",
]
