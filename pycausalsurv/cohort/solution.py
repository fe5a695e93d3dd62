"""
Solution wrappers for cohort construction results.

Both wrappers behave as read-only column mappings (``sol["stop"]``,
``"severity" in sol``) so they can be handed directly to a CovariateSpec.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pycausalsurv.cohort._common import DEATH, DISCHARGE, IntervalParams, SubjectParams
from pycausalsurv.core.result import Result


class IntervalSolution:
    """Counting-process interval dataset."""

    __slots__ = ('_result',)

    _FIXED = ("pt", "start", "stop", "event_type")

    def __init__(self, _result: Result[IntervalParams]) -> None:
        self._result = _result

    # -- Mapping protocol --

    def __getitem__(self, key: str) -> NDArray:
        params = self._result.params
        if key in self._FIXED:
            return getattr(params, key)
        try:
            return params.covariates[key]
        except KeyError:
            raise KeyError(
                f"IntervalSolution has no column '{key}'. "
                f"Available: {list(self.keys())}"
            ) from None

    def __contains__(self, key: object) -> bool:
        return key in self._FIXED or key in self._result.params.covariates

    def keys(self) -> tuple[str, ...]:
        return self._FIXED + tuple(self._result.params.covariates)

    def __len__(self) -> int:
        return len(self._result.params.stop)

    # -- Properties --

    @property
    def pt(self) -> NDArray:
        return self._result.params.pt

    @property
    def start(self) -> NDArray:
        return self._result.params.start

    @property
    def stop(self) -> NDArray:
        return self._result.params.stop

    @property
    def event_type(self) -> NDArray:
        return self._result.params.event_type

    @property
    def covariate_names(self) -> tuple[str, ...]:
        return tuple(self._result.params.covariates)

    @property
    def n_intervals(self) -> int:
        return len(self)

    @property
    def n_subjects(self) -> int:
        return self._result.params.n_subjects

    @property
    def dropped_subjects(self) -> tuple:
        """Subjects removed for lacking any outcome information."""
        return self._result.params.dropped_subjects

    @property
    def info(self) -> dict:
        return self._result.info

    @property
    def timing(self):
        return self._result.timing

    def event(self, target: int = DEATH) -> NDArray:
        """0/1 indicator of ``event_type == target``."""
        return (self.event_type == target).astype(np.float64)

    def n_events(self, target: int = DEATH) -> int:
        return int(np.sum(self.event_type == target))

    # -- Conversions --

    def to_frame(self) -> pd.DataFrame:
        """Intervals as a DataFrame (one row per interval)."""
        p = self._result.params
        return pd.DataFrame({
            "pt": p.pt,
            "start": p.start,
            "stop": p.stop,
            "event_type": p.event_type,
            **p.covariates,
        })

    def to_daily(self) -> pd.DataFrame:
        """Intervals back as daily records (``day = stop``).

        Rebuilding intervals from this frame reproduces this solution.
        """
        p = self._result.params
        return pd.DataFrame({
            "pt": p.pt,
            "day": p.stop,
            "death": (p.event_type == DEATH).astype(np.float64),
            "discharge": (p.event_type == DISCHARGE).astype(np.float64),
            **p.covariates,
        })

    def summary(self) -> str:
        lines = ["Call: build_intervals()", ""]
        lines.append(
            f"  subjects= {self.n_subjects}, intervals= {self.n_intervals}, "
            f"dropped= {len(self.dropped_subjects)}"
        )
        lines.append(
            f"  deaths= {self.n_events(DEATH)}, "
            f"discharges= {self.n_events(DISCHARGE)}"
        )
        lines.append(f"  covariates: {', '.join(self.covariate_names) or '(none)'}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"IntervalSolution(subjects={self.n_subjects}, "
            f"intervals={self.n_intervals})"
        )


class SubjectSolution:
    """One-row-per-subject collapse."""

    __slots__ = ('_result',)

    _FIXED = ("pt", "time", "status", "event_type")

    def __init__(self, _result: Result[SubjectParams]) -> None:
        self._result = _result

    def __getitem__(self, key: str) -> NDArray:
        params = self._result.params
        if key in self._FIXED:
            return getattr(params, key)
        try:
            return params.covariates[key]
        except KeyError:
            raise KeyError(
                f"SubjectSolution has no column '{key}'. "
                f"Available: {list(self.keys())}"
            ) from None

    def __contains__(self, key: object) -> bool:
        return key in self._FIXED or key in self._result.params.covariates

    def keys(self) -> tuple[str, ...]:
        return self._FIXED + tuple(self._result.params.covariates)

    def __len__(self) -> int:
        return len(self._result.params.time)

    @property
    def pt(self) -> NDArray:
        return self._result.params.pt

    @property
    def time(self) -> NDArray:
        return self._result.params.time

    @property
    def status(self) -> NDArray:
        return self._result.params.status

    @property
    def event_type(self) -> NDArray:
        return self._result.params.event_type

    @property
    def n_subjects(self) -> int:
        return len(self)

    @property
    def timing(self):
        return self._result.timing

    def to_frame(self) -> pd.DataFrame:
        p = self._result.params
        return pd.DataFrame({
            "pt": p.pt,
            "time": p.time,
            "status": p.status,
            "event_type": p.event_type,
            **p.covariates,
        })

    def __repr__(self) -> str:
        return (
            f"SubjectSolution(subjects={self.n_subjects}, "
            f"deaths={int(np.sum(self.status))})"
        )
