"""
Cohort construction.

Public API:
    build_intervals(daily, ...) -> IntervalSolution
    collapse_subjects(intervals, ...) -> SubjectSolution
    CarryForward, NoImputation   imputation policies
"""

from pycausalsurv.cohort._common import CENSORED, DEATH, DISCHARGE
from pycausalsurv.cohort._impute import CarryForward, ImputationPolicy, NoImputation
from pycausalsurv.cohort.design import DailyDesign
from pycausalsurv.cohort.solution import IntervalSolution, SubjectSolution
from pycausalsurv.cohort.solvers import build_intervals, collapse_subjects

__all__ = [
    "build_intervals",
    "collapse_subjects",
    "IntervalSolution",
    "SubjectSolution",
    "DailyDesign",
    "ImputationPolicy",
    "CarryForward",
    "NoImputation",
    "CENSORED",
    "DEATH",
    "DISCHARGE",
]
