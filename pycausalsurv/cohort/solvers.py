"""
Public API for cohort construction.

    build_intervals(daily) -> IntervalSolution
    collapse_subjects(intervals) -> SubjectSolution

Each function validates inputs, runs the construction on arrays, and wraps
the Result in a Solution.
"""

from __future__ import annotations

import warnings
from typing import Mapping, Sequence

import numpy as np
import pandas as pd

from pycausalsurv.cohort._impute import ImputationPolicy
from pycausalsurv.cohort._intervals import (
    add_running_sums, build_interval_params, collapse_params, sort_daily,
)
from pycausalsurv.cohort._common import SubjectParams
from pycausalsurv.cohort.design import DailyDesign
from pycausalsurv.cohort.solution import IntervalSolution, SubjectSolution
from pycausalsurv.core.compute.timing import Timer
from pycausalsurv.core.exceptions import MalformedCohort, ValidationError
from pycausalsurv.core.result import Result


def build_intervals(
    daily: pd.DataFrame,
    *,
    covariates: Sequence[str] | None = None,
    imputation: ImputationPolicy | None = None,
    cumulative: Sequence[str] = (),
) -> IntervalSolution:
    """Build counting-process intervals from per-subject daily records.

    Parameters
    ----------
    daily : DataFrame
        Columns ``pt, day, death, discharge`` plus covariates (e.g.
        ``fluids, severity``). Rows may come in any order; they are sorted
        by subject (first appearance) and day before anything else runs.
    covariates : sequence of str or None
        Covariate columns to attach to the intervals. None keeps every
        non-reserved column (including the added running sums).
    imputation : ImputationPolicy or None
        Applied to the daily records before intervals are built, e.g.
        ``CarryForward(["fluids", "severity"])``. None applies nothing.
    cumulative : sequence of str
        Columns for which a within-subject running sum ``<col>_cumulative``
        is added before imputation (cumulative fluid balance).

    Returns
    -------
    IntervalSolution

    Raises
    ------
    MalformedCohort
        Duplicate days within a subject, simultaneous death and discharge,
        repeated or non-terminal death records.
    """
    if not isinstance(daily, pd.DataFrame):
        raise ValidationError(
            f"daily must be a pandas DataFrame, got {type(daily).__name__}"
        )
    if imputation is not None and not isinstance(imputation, ImputationPolicy):
        raise ValidationError(
            f"imputation must provide apply(DataFrame), got {type(imputation).__name__}"
        )

    timer = Timer()
    timer.start()

    with timer.section('prepare'):
        frame = daily
        if "pt" in frame.columns and "day" in frame.columns:
            frame = sort_daily(frame)
        if cumulative:
            if "pt" not in frame.columns:
                raise ValidationError("daily records are missing required columns ['pt']")
            frame = add_running_sums(frame, cumulative)
        if imputation is not None:
            frame = imputation.apply(frame)
        if covariates is not None:
            covariates = list(covariates) + [
                f"{c}_cumulative" for c in cumulative
                if f"{c}_cumulative" not in covariates
            ]

    with timer.section('validate'):
        design = DailyDesign.from_dataframe(frame, covariates)

    with timer.section('intervals'):
        params = build_interval_params(design)

    timer.stop()

    warnings_list = []
    if params.dropped_subjects:
        warnings_list.append(
            f"{len(params.dropped_subjects)} subject(s) dropped: "
            f"no death or discharge information"
        )
        warnings.warn(warnings_list[-1], RuntimeWarning, stacklevel=2)

    result = Result(
        params=params,
        info={
            "method": "counting-process intervals",
            "imputation": repr(imputation),
            "cumulative": tuple(cumulative),
            "n_records": design.n,
        },
        timing=timer.result(),
        backend_name="cpu_intervals",
        warnings=tuple(warnings_list),
    )

    return IntervalSolution(_result=result)


def collapse_subjects(
    intervals: IntervalSolution,
    *,
    aggregates: Mapping[str, tuple[str, str]] | None = None,
    baseline: pd.DataFrame | None = None,
) -> SubjectSolution:
    """Collapse intervals to one row per subject for static analyses.

    Parameters
    ----------
    intervals : IntervalSolution
        Output of :func:`build_intervals`.
    aggregates : mapping or None
        ``{out_name: (column, how)}`` with ``how`` one of sum, mean, first,
        last, max, min. None gives ``<col>_mean`` for every covariate.
    baseline : DataFrame or None
        One row per subject keyed by ``pt`` (e.g. ``fluids_cumulative,
        fluids_mean, severity_baseline, mort_90days``), left-joined.

    Returns
    -------
    SubjectSolution
        ``time = max(day)``, ``status = 1{death}``, ``event_type`` and the
        requested columns.
    """
    if not isinstance(intervals, IntervalSolution):
        raise ValidationError(
            f"intervals must be an IntervalSolution, got {type(intervals).__name__}"
        )

    if aggregates is None:
        aggregates = {f"{c}_mean": (c, "mean") for c in intervals.covariate_names}

    timer = Timer()
    timer.start()

    with timer.section('collapse'):
        params = collapse_params(intervals._result.params, dict(aggregates))

    if baseline is not None:
        with timer.section('baseline'):
            params = _merge_baseline(params, baseline)

    timer.stop()

    result = Result(
        params=params,
        info={
            "method": "subject collapse",
            "aggregates": dict(aggregates),
            "baseline": baseline is not None,
        },
        timing=timer.result(),
        backend_name="cpu_collapse",
        warnings=(),
    )

    return SubjectSolution(_result=result)


def _merge_baseline(params: SubjectParams, baseline: pd.DataFrame) -> SubjectParams:
    if "pt" not in baseline.columns:
        raise ValidationError("baseline records are missing required column 'pt'")
    if baseline["pt"].duplicated().any():
        dup = baseline.loc[baseline["pt"].duplicated(), "pt"].iloc[0]
        raise MalformedCohort(
            f"baseline has more than one row for subject {dup!r}", subject=dup
        )
    extra = [c for c in baseline.columns if c != "pt"]
    clash = [c for c in extra if c in params.covariates or c in ("time", "status", "event_type")]
    if clash:
        raise ValidationError(
            f"baseline columns {clash} collide with collapsed subject columns"
        )

    left = pd.DataFrame({"pt": params.pt})
    merged = left.merge(baseline, on="pt", how="left", validate="one_to_one")

    covariates = dict(params.covariates)
    for c in extra:
        try:
            covariates[c] = merged[c].to_numpy(dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"baseline column '{c}' is not numeric: {e}") from e

    return SubjectParams(
        pt=params.pt,
        time=params.time,
        status=params.status,
        event_type=params.event_type,
        covariates=covariates,
    )
