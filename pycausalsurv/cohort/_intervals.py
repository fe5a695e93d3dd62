"""
Counting-process interval construction.

Each daily record becomes one interval (start, stop] with stop = day and
start = the subject's previous day (day - 1 for the first record, so a
subject first seen on day 5 enters the risk sets at 4). Only the final
interval of a subject carries an event type:

    1 (death)      if any death == 1 was recorded,
    2 (discharge)  otherwise, if any discharge == 1 was recorded,
    0 (censored)   otherwise.

Subjects whose death and discharge indicators are missing on every record
carry no outcome information and are dropped.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from pycausalsurv.cohort._common import (
    CENSORED, DEATH, DISCHARGE, IntervalParams, SubjectParams,
)
from pycausalsurv.cohort.design import DailyDesign
from pycausalsurv.core.exceptions import ValidationError

AGGREGATIONS = ("sum", "mean", "first", "last", "max", "min")


def build_interval_params(design: DailyDesign) -> IntervalParams:
    """Convert validated daily records into counting-process intervals."""
    n_subj = design.n_subjects
    codes = design.codes

    has_outcome = ~np.isnan(design.death) | ~np.isnan(design.discharge)
    informative = np.bincount(
        codes, weights=has_outcome.astype(np.float64), minlength=n_subj
    ) > 0
    any_death = np.bincount(
        codes, weights=(design.death == 1).astype(np.float64), minlength=n_subj
    ) > 0
    any_discharge = np.bincount(
        codes, weights=(design.discharge == 1).astype(np.float64), minlength=n_subj
    ) > 0

    subject_event = np.full(n_subj, CENSORED, dtype=np.int64)
    subject_event[any_discharge] = DISCHARGE
    subject_event[any_death] = DEATH

    # Subject-major order, by day within subject
    order = np.lexsort((design.day, codes))
    order = order[informative[codes[order]]]

    c = codes[order]
    stop = design.day[order]
    first = np.ones(len(order), dtype=bool)
    first[1:] = c[1:] != c[:-1]
    last = np.ones(len(order), dtype=bool)
    last[:-1] = c[:-1] != c[1:]

    start = np.empty_like(stop)
    start[first] = stop[first] - 1.0
    start[~first] = stop[np.flatnonzero(~first) - 1]

    event_type = np.zeros(len(order), dtype=np.int64)
    event_type[last] = subject_event[c[last]]

    covariates = {name: values[order] for name, values in design.covariates.items()}

    return IntervalParams(
        pt=design.pt[order],
        start=start,
        stop=stop,
        event_type=event_type,
        covariates=covariates,
        n_subjects=int(np.sum(informative)),
        dropped_subjects=tuple(design.subjects[~informative].tolist()),
    )


def sort_daily(daily: pd.DataFrame) -> pd.DataFrame:
    """Order records subject-major (first appearance) and by day within subject.

    Returns ``daily`` itself when it is already in that order. Days that are
    missing or non-numeric sort last and are rejected by ``DailyDesign``.
    """
    codes, _ = pd.factorize(daily["pt"], sort=False)
    day = pd.to_numeric(daily["day"], errors="coerce").to_numpy(dtype=np.float64)
    order = np.lexsort((day, codes))
    if np.all(order[1:] > order[:-1]):
        return daily
    return daily.iloc[order].reset_index(drop=True)


def add_running_sums(daily: pd.DataFrame, columns) -> pd.DataFrame:
    """Append ``<col>_cumulative`` within-subject running sums.

    Missing daily values contribute zero, so the running sum on a day with
    no measurement equals the previous day's total. Rows of a subject are
    summed in the order given, which is day order inside ``build_intervals``.
    """
    out = daily.copy()
    for col in columns:
        if col not in out.columns:
            raise ValidationError(f"cumulative column '{col}' not in daily records")
        name = f"{col}_cumulative"
        if name in out.columns:
            raise ValidationError(f"column '{name}' already exists in daily records")
        values = pd.to_numeric(out[col], errors="raise").fillna(0.0)
        out[name] = values.groupby(out["pt"], sort=False).cumsum()
    return out


def collapse_params(
    params: IntervalParams,
    aggregates: dict[str, tuple[str, str]],
) -> SubjectParams:
    """Collapse intervals to one row per subject.

    ``time`` is the last stop, ``status`` flags death, and each aggregate
    ``out_name -> (column, how)`` is computed over the subject's intervals
    ignoring missing values.
    """
    frame = pd.DataFrame({
        "pt": params.pt,
        "stop": params.stop,
        "event_type": params.event_type,
        **params.covariates,
    })

    named = {
        "time": ("stop", "max"),
        "event_type": ("event_type", "max"),
    }
    for out_name, (col, how) in aggregates.items():
        if how not in AGGREGATIONS:
            raise ValidationError(
                f"aggregate '{out_name}': unknown aggregation '{how}', "
                f"expected one of {AGGREGATIONS}"
            )
        if col not in params.covariates:
            raise ValidationError(
                f"aggregate '{out_name}': column '{col}' not among interval "
                f"covariates {list(params.covariates)}"
            )
        if out_name in ("pt", "time", "status", "event_type"):
            raise ValidationError(f"aggregate name '{out_name}' is reserved")
        named[out_name] = (col, how)

    grouped = frame.groupby("pt", sort=False).agg(**named).reset_index()

    event_type = grouped["event_type"].to_numpy(dtype=np.int64)
    return SubjectParams(
        pt=grouped["pt"].to_numpy(),
        time=grouped["time"].to_numpy(dtype=np.float64),
        status=(event_type == DEATH).astype(np.int64),
        event_type=event_type,
        covariates={
            name: grouped[name].to_numpy(dtype=np.float64) for name in aggregates
        },
    )
