"""
Core infrastructure shared by every analysis domain.

    exceptions   error hierarchy with diagnostic attributes
    result       Result[P] envelope
    validation   fail-fast input checks
    config       AnalysisConfig
    covariates   CovariateSpec
"""

from pycausalsurv.core.config import AnalysisConfig
from pycausalsurv.core.covariates import Covariate, CovariateSpec, column
from pycausalsurv.core.exceptions import (
    BalanceNotAchieved,
    ConfigError,
    ConvergenceError,
    DimensionError,
    InsufficientEvents,
    InvalidWeight,
    MalformedCohort,
    NonConvergence,
    NumericalError,
    PyCausalSurvError,
    ValidationError,
)
from pycausalsurv.core.result import Result

__all__ = [
    "AnalysisConfig",
    "Covariate",
    "CovariateSpec",
    "column",
    "Result",
    "PyCausalSurvError",
    "ValidationError",
    "DimensionError",
    "MalformedCohort",
    "ConfigError",
    "NumericalError",
    "InvalidWeight",
    "ConvergenceError",
    "NonConvergence",
    "BalanceNotAchieved",
    "InsufficientEvents",
]
