"""
End-to-end causal survival analysis.

    run_pipeline(daily, baseline) → PipelineSolution

Data flow:

    daily records ─ imputation ─ intervals ─┬─ Cox per covariate set
                                            ├─ subject collapse ─ Fine-Gray
                                            └─ weights ─ truncation ─ weighted Cox (MSM)
                                                                      └─ counterfactual

Each analysis is independent of its siblings: a PyCausalSurvError raised by
one is recorded under the analysis name and the others still run. Analyses
downstream of a failed one are listed as skipped.
"""

from __future__ import annotations

import warnings
from typing import Mapping, Sequence

import pandas as pd

from pycausalsurv.cohort import CarryForward, build_intervals, collapse_subjects
from pycausalsurv.cohort._impute import ImputationPolicy
from pycausalsurv.core.compute.timing import Timer
from pycausalsurv.core.config import AnalysisConfig
from pycausalsurv.core.covariates import CovariateSpec
from pycausalsurv.core.exceptions import PyCausalSurvError
from pycausalsurv.counterfactual import evaluate_counterfactual, set_to_median
from pycausalsurv.counterfactual._assign import Assignment
from pycausalsurv.survival import coxph_intervals, finegray_subjects
from pycausalsurv.weighting import estimate_weights, truncate_weights


class PipelineSolution:
    """Per-analysis results and errors of one pipeline run."""

    __slots__ = ('_results', '_errors', '_skipped', '_config', '_timing')

    def __init__(self, results: dict, errors: dict, skipped: tuple,
                 config: AnalysisConfig, timing: dict) -> None:
        self._results = results
        self._errors = errors
        self._skipped = skipped
        self._config = config
        self._timing = timing

    @property
    def results(self) -> dict:
        """Analysis name -> Solution, for analyses that succeeded."""
        return dict(self._results)

    @property
    def errors(self) -> dict[str, PyCausalSurvError]:
        """Analysis name -> error, for analyses that failed."""
        return dict(self._errors)

    @property
    def skipped(self) -> tuple[str, ...]:
        """Analyses not run because an upstream analysis failed."""
        return self._skipped

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    @property
    def timing(self) -> dict:
        return self._timing

    @property
    def ok(self) -> bool:
        return not self._errors and not self._skipped

    def __getitem__(self, name: str):
        if name in self._results:
            return self._results[name]
        if name in self._errors:
            raise KeyError(f"analysis '{name}' failed: {self._errors[name]}")
        raise KeyError(f"no analysis named '{name}'")

    def __contains__(self, name: object) -> bool:
        return name in self._results

    def coefficient_table(self) -> pd.DataFrame:
        """Coefficient tables of every fitted model, stacked."""
        frames = []
        for name, sol in self._results.items():
            to_frame = getattr(sol, "to_frame", None)
            if name.startswith(("cox_", "finegray", "msm")) and to_frame is not None:
                frame = to_frame()
                frame.insert(0, "analysis", name)
                frames.append(frame)
        if not frames:
            return pd.DataFrame()
        return pd.concat(frames, ignore_index=True)

    def summary(self) -> str:
        lines = ["Pipeline run", ""]
        for name, sol in self._results.items():
            lines.append(f"  {name:<24s} ok      {sol!r}")
        for name, err in self._errors.items():
            lines.append(f"  {name:<24s} FAILED  {type(err).__name__}: {err}")
        for name in self._skipped:
            lines.append(f"  {name:<24s} skipped")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"PipelineSolution(ok={len(self._results)}, "
            f"failed={len(self._errors)}, skipped={len(self._skipped)})"
        )


def run_pipeline(
    daily: pd.DataFrame,
    baseline: pd.DataFrame | None = None,
    *,
    config: AnalysisConfig | None = None,
    exposure: str = "fluids_cumulative",
    confounders: Sequence[str] = ("severity",),
    cumulative: Sequence[str] = ("fluids",),
    imputation: ImputationPolicy | None = None,
    covariate_sets: Mapping[str, CovariateSpec | Sequence[str]] | None = None,
    finegray_covariates: CovariateSpec | Sequence[str] | None = None,
    assign: Assignment | None = None,
) -> PipelineSolution:
    """Run every analysis of the causal survival pipeline.

    Parameters
    ----------
    daily : DataFrame
        Daily records ``pt, day, fluids, severity, death, discharge``.
    baseline : DataFrame or None
        One row per subject, merged into the subject collapse.
    config : AnalysisConfig or None
        Analysis options; defaults to ``AnalysisConfig()``.
    exposure : str
        Time-varying exposure column of the intervals.
    confounders : sequence of str
        Time-varying confounders balanced by the weights.
    cumulative : sequence of str
        Daily columns turned into running sums (``fluids`` gives
        ``fluids_cumulative``).
    imputation : ImputationPolicy or None
        Defaults to carrying the cumulative columns and confounders forward.
    covariate_sets : mapping or None
        Name -> covariates for the direct-adjustment Cox fits. Defaults to
        ``{"crude": (exposure,), "adjusted": (exposure, *confounders)}``.
    finegray_covariates : CovariateSpec, sequence of str or None
        Subject-level covariates for Fine-Gray. Defaults to the per-subject
        means of the exposure and confounders.
    assign : callable or None
        Counterfactual assignment; defaults to the median exposure.

    Returns
    -------
    PipelineSolution
    """
    config = AnalysisConfig() if config is None else config
    confounders = tuple(confounders)
    if imputation is None:
        imputation = CarryForward([f"{c}_cumulative" for c in cumulative] + list(confounders))
    if covariate_sets is None:
        covariate_sets = {"crude": (exposure,), "adjusted": (exposure, *confounders)}
    if finegray_covariates is None:
        finegray_covariates = tuple(f"{c}_mean" for c in (exposure, *confounders))
    if assign is None:
        assign = set_to_median(exposure)

    cox_options = dict(
        target=config.event_target,
        ties=config.tie_method,
        tol=config.convergence_tolerance,
        max_iter=config.max_iterations,
        conf_level=config.conf_level,
    )

    results: dict = {}
    errors: dict = {}
    skipped: list[str] = []
    timer = Timer()
    timer.start()

    def attempt(name, func, *args, **kwargs):
        try:
            with timer.section(name):
                results[name] = func(*args, **kwargs)
        except PyCausalSurvError as e:
            errors[name] = e
            warnings.warn(f"analysis '{name}' failed: {type(e).__name__}: {e}",
                          RuntimeWarning, stacklevel=3)
            return None
        return results[name]

    cox_names = [f"cox_{name}" for name in covariate_sets]
    downstream = cox_names + ["subjects", "finegray", "weights", "truncated_weights",
                              "msm", "counterfactual"]

    intervals = attempt("intervals", build_intervals, daily,
                        imputation=imputation, cumulative=tuple(cumulative))
    if intervals is None:
        timer.stop()
        return PipelineSolution(results, errors, tuple(downstream), config, timer.result())

    for name, covs in covariate_sets.items():
        spec = covs if isinstance(covs, CovariateSpec) else CovariateSpec.from_columns(*covs)
        attempt(f"cox_{name}", coxph_intervals, intervals, spec, **cox_options)

    subjects = attempt("subjects", collapse_subjects, intervals, baseline=baseline)
    if subjects is None:
        skipped.append("finegray")
    else:
        fg_spec = (finegray_covariates if isinstance(finegray_covariates, CovariateSpec)
                   else CovariateSpec.from_columns(*finegray_covariates))
        attempt("finegray", finegray_subjects, subjects, fg_spec,
                competing=config.competing_event,
                min_events=config.min_events_finegray,
                **cox_options)

    weights = attempt("weights", estimate_weights, intervals,
                      exposure=exposure,
                      covariates=confounders,
                      strategy=config.weighting_strategy,
                      threshold=config.balance_threshold)
    truncated = None
    if weights is None:
        skipped.extend(["truncated_weights", "msm", "counterfactual"])
    else:
        truncated = attempt("truncated_weights", truncate_weights, weights,
                            *config.truncation_quantiles)
        if truncated is None:
            skipped.extend(["msm", "counterfactual"])

    if truncated is not None:
        msm_spec = CovariateSpec.from_columns(exposure)
        msm = attempt("msm", coxph_intervals, intervals, msm_spec,
                      weights=truncated, **cox_options)
        if msm is None:
            skipped.append("counterfactual")
        else:
            attempt("counterfactual", evaluate_counterfactual, msm, intervals,
                    msm_spec, assign, weights=truncated)

    timer.stop()
    return PipelineSolution(results, errors, tuple(skipped), config, timer.result())
