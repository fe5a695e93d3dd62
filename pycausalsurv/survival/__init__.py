"""
Survival analysis.

Public API:
    coxph(...) -> CoxSolution
    coxph_intervals(...) -> CoxSolution
    finegray(...) -> FineGraySolution
    finegray_subjects(...) -> FineGraySolution
    kaplan_meier(...) -> KMSolution
"""

from pycausalsurv.survival.design import CoxDesign
from pycausalsurv.survival.solution import CoxSolution, FineGraySolution, KMSolution
from pycausalsurv.survival.solvers import (
    coxph,
    coxph_intervals,
    finegray,
    finegray_subjects,
    kaplan_meier,
)

__all__ = [
    "coxph",
    "coxph_intervals",
    "finegray",
    "finegray_subjects",
    "kaplan_meier",
    "CoxDesign",
    "CoxSolution",
    "FineGraySolution",
    "KMSolution",
]
