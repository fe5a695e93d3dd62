"""
PyCausalSurv: causal survival analysis for time-varying continuous exposures.

Marginal structural Cox models with inverse-probability weights, competing
risks via Fine-Gray, and counterfactual survival, built on NumPy and SciPy.

Submodules:
    cohort: Counting-process intervals from daily records
    survival: Weighted Cox, Fine-Gray, Kaplan-Meier
    weighting: Exposure weights (boosted, covariate balancing), truncation
    counterfactual: Counterfactual survival and attributable mortality
    pipeline: End-to-end orchestration
"""

__version__ = "0.1.0"

from pycausalsurv import cohort
from pycausalsurv import survival
from pycausalsurv import weighting
from pycausalsurv import counterfactual
from pycausalsurv.core import AnalysisConfig, CovariateSpec
from pycausalsurv.pipeline import PipelineSolution, run_pipeline

__all__ = [
    "__version__",
    "cohort",
    "survival",
    "weighting",
    "counterfactual",
    "AnalysisConfig",
    "CovariateSpec",
    "PipelineSolution",
    "run_pipeline",
]
