"""
Parameter payloads for cohort construction results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray

CENSORED = 0
DEATH = 1
DISCHARGE = 2


@dataclass(frozen=True)
class IntervalParams:
    """Counting-process intervals, one row per subject-day."""

    pt: NDArray                      # (n,) subject identifiers
    start: NDArray                   # (n,) interval start (exclusive)
    stop: NDArray                    # (n,) interval stop (inclusive) = day
    event_type: NDArray              # (n,) 0 censored, 1 death, 2 discharge
    covariates: dict[str, NDArray]   # name -> (n,) covariate values at stop
    n_subjects: int
    dropped_subjects: tuple          # subjects with no outcome information


@dataclass(frozen=True)
class SubjectParams:
    """One-row-per-subject collapse of an interval dataset."""

    pt: NDArray                      # (m,) subject identifiers
    time: NDArray                    # (m,) last observed day
    status: NDArray                  # (m,) 1 if the subject died
    event_type: NDArray              # (m,) terminal event type
    covariates: dict[str, NDArray]   # name -> (m,) aggregated / baseline values
