"""
Tests for run_pipeline() and PipelineSolution.

Validates:
    - Every analysis runs on a simulated cohort
    - A failing analysis is recorded and its siblings still run
    - Analyses downstream of a failure are reported as skipped
"""

import warnings

import numpy as np
import pandas as pd
import pytest

from pycausalsurv import AnalysisConfig, PipelineSolution, run_pipeline
from pycausalsurv.cohort import IntervalSolution
from pycausalsurv.core.exceptions import InsufficientEvents, ValidationError
from pycausalsurv.counterfactual import CounterfactualSolution
from pycausalsurv.survival import CoxSolution, FineGraySolution
from pycausalsurv.weighting import WeightSolution


ANALYSES = (
    "intervals", "cox_crude", "cox_adjusted", "subjects", "finegray",
    "weights", "truncated_weights", "msm", "counterfactual",
)


@pytest.fixture
def run(daily):
    with warnings.catch_warnings():
        # truncation may push balance above the threshold
        warnings.simplefilter("ignore", RuntimeWarning)
        return run_pipeline(daily, config=AnalysisConfig(weighting_strategy="balancing"))


# ═══════════════════════════════════════════════════════════════════════
# Full run
# ═══════════════════════════════════════════════════════════════════════


class TestFullRun:

    def test_all_analyses(self, run):
        assert isinstance(run, PipelineSolution)
        assert run.ok
        assert run.errors == {}
        assert run.skipped == ()
        for name in ANALYSES:
            assert name in run

    def test_result_types(self, run):
        assert isinstance(run["intervals"], IntervalSolution)
        assert isinstance(run["cox_adjusted"], CoxSolution)
        assert isinstance(run["finegray"], FineGraySolution)
        assert isinstance(run["weights"], WeightSolution)
        assert isinstance(run["counterfactual"], CounterfactualSolution)

    def test_covariate_sets(self, run):
        assert run["cox_crude"].names == ("fluids_cumulative",)
        assert run["cox_adjusted"].names == ("fluids_cumulative", "severity")
        assert run["finegray"].names == ("fluids_cumulative_mean", "severity_mean")

    def test_msm_uses_truncated_weights(self, run):
        truncated = run["truncated_weights"]
        assert truncated.truncation == (0.01, 0.99)
        assert run["weights"].strategy == "balancing"
        assert run["msm"].names == ("fluids_cumulative",)
        assert run["msm"].n_observations == len(truncated)

    def test_coefficient_table(self, run):
        table = run.coefficient_table()
        assert set(table["analysis"]) == {"cox_crude", "cox_adjusted", "finegray", "msm"}
        assert len(table) == 1 + 2 + 2 + 1

    def test_summary_and_repr(self, run):
        assert "counterfactual" in run.summary()
        assert repr(run) == "PipelineSolution(ok=9, failed=0, skipped=0)"
        assert "intervals" in run.timing

    def test_unknown_analysis(self, run):
        with pytest.raises(KeyError, match="no analysis"):
            run["logrank"]


# ═══════════════════════════════════════════════════════════════════════
# Failure isolation
# ═══════════════════════════════════════════════════════════════════════


class TestFailures:

    def test_finegray_failure_isolated(self, daily):
        config = AnalysisConfig(weighting_strategy="balancing", min_events_finegray=10000)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            run = run_pipeline(daily, config=config)

        assert isinstance(run.errors["finegray"], InsufficientEvents)
        assert any("analysis 'finegray' failed" in str(w.message) for w in caught)
        assert "finegray" not in run
        assert "msm" in run
        assert "counterfactual" in run
        assert not run.ok
        with pytest.raises(KeyError, match="failed"):
            run["finegray"]

    def test_interval_failure_skips_everything(self, daily):
        with pytest.warns(RuntimeWarning, match="analysis 'intervals' failed"):
            run = run_pipeline(daily.drop(columns="death"))
        assert isinstance(run.errors["intervals"], ValidationError)
        assert run.results == {}
        assert set(run.skipped) == set(ANALYSES) - {"intervals"}

    def test_custom_covariate_sets(self, daily):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            run = run_pipeline(
                daily,
                config=AnalysisConfig(weighting_strategy="balancing"),
                covariate_sets={"severity_only": ("severity",)},
            )
        assert "cox_severity_only" in run
        assert "cox_crude" not in run
        assert run["cox_severity_only"].coefficients[0] > 0


class TestBaseline:

    def test_baseline_merged(self, daily):
        pts = np.unique(daily["pt"])
        baseline = pd.DataFrame({"pt": pts, "age": np.linspace(40.0, 80.0, len(pts))})
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            run = run_pipeline(
                daily, baseline,
                config=AnalysisConfig(weighting_strategy="balancing"),
                finegray_covariates=("fluids_cumulative_mean", "age"),
            )
        assert "age" in run["subjects"]
        assert run["finegray"].names == ("fluids_cumulative_mean", "age")
