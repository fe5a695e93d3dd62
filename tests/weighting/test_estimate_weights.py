"""
Tests for estimate_weights() and WeightSolution.
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from pycausalsurv.cohort import CarryForward, build_intervals
from pycausalsurv.core.covariates import CovariateSpec
from pycausalsurv.core.exceptions import ConfigError, InvalidWeight, MalformedCohort, ValidationError
from pycausalsurv.weighting import WeightSolution, estimate_weights
from pycausalsurv.weighting._common import StrategyFit


class FixedWeights:
    """Strategy returning preset weights, for exercising the wrapper."""

    name = "fixed"
    stop_method = "mean"

    def __init__(self, weights, threshold=1.0):
        self.weights = np.asarray(weights, dtype=np.float64)
        self.threshold = threshold

    def estimate(self, exposure, X):
        return StrategyFit(weights=self.weights, statistic=0.0, n_iter=0, converged=True)

    def __repr__(self):
        return "FixedWeights()"


# ═══════════════════════════════════════════════════════════════════════
# Strategies by name
# ═══════════════════════════════════════════════════════════════════════


class TestByName:

    def test_balancing(self, two_confounders):
        sol = estimate_weights(
            two_confounders, exposure="exposure", covariates=("x1", "x2"),
            strategy="balancing",
        )
        assert isinstance(sol, WeightSolution)
        assert sol.strategy == "balancing"
        assert sol.names == ("x1", "x2")
        assert sol.valid
        assert sol.converged
        assert sol.statistic < 1e-4
        assert len(sol) == 400
        assert sol._result.backend_name == "cpu_balancing"

    def test_boosted(self, confounded):
        sol = estimate_weights(
            confounded, exposure="exposure", covariates=("x",), threshold=0.2,
        )
        assert sol.strategy == "boosted"
        assert sol.threshold == 0.2
        assert sol.valid
        table = sol.balance_table()
        assert list(table.columns) == ["covariate", "unweighted", "weighted"]
        assert abs(table["weighted"].iloc[0]) < abs(table["unweighted"].iloc[0])

    def test_unknown_name(self, confounded):
        with pytest.raises(ConfigError, match="strategy"):
            estimate_weights(confounded, exposure="exposure", covariates=("x",),
                             strategy="logistic")

    def test_not_a_strategy(self, confounded):
        with pytest.raises(ConfigError, match="estimate"):
            estimate_weights(confounded, exposure="exposure", covariates=("x",),
                             strategy=object())


# ═══════════════════════════════════════════════════════════════════════
# Wrapper behaviour with a fixed strategy
# ═══════════════════════════════════════════════════════════════════════


class TestWrapper:

    def test_records_align_with_intervals(self, two_confounders):
        w = np.linspace(0.5, 1.5, 400)
        sol = estimate_weights(
            two_confounders, exposure="exposure", covariates=("x1", "x2"),
            strategy=FixedWeights(w),
        )
        frame = sol.to_frame()
        assert list(frame.columns) == ["pt", "day", "weight", "valid"]
        assert frame["valid"].dtype == bool
        assert frame["valid"].all()
        assert_array_equal(frame["pt"], two_confounders["pt"])
        assert_array_equal(frame["day"], two_confounders["stop"])
        assert_array_equal(frame["weight"], w)

    def test_cumulative_products(self, two_confounders):
        w = np.tile([2.0, 0.5, 1.0, 3.0], 100)
        sol = estimate_weights(
            two_confounders, exposure="exposure", covariates=("x1", "x2"),
            strategy=FixedWeights(w), cumulative=True,
        )
        assert_allclose(sol.weights[:4], [2.0, 1.0, 1.0, 3.0])
        assert_array_equal(sol.raw_weights, w)
        assert sol.params.cumulative is True

    def test_imbalance_warns_and_invalid(self, two_confounders):
        with pytest.warns(RuntimeWarning, match="above the threshold"):
            sol = estimate_weights(
                two_confounders, exposure="exposure", covariates=("x1", "x2"),
                strategy=FixedWeights(np.ones(400), threshold=1e-6),
            )
        assert not sol.valid
        assert sol.statistic > 1e-6
        assert len(sol.warnings) == 1
        assert not sol.to_frame()["valid"].any()

    def test_invalid_strategy_weights(self, two_confounders):
        w = np.ones(400)
        w[7] = -0.5
        with pytest.raises(InvalidWeight):
            estimate_weights(
                two_confounders, exposure="exposure", covariates=("x1", "x2"),
                strategy=FixedWeights(w),
            )

    def test_effective_sample_size(self, two_confounders):
        sol = estimate_weights(
            two_confounders, exposure="exposure", covariates=("x1", "x2"),
            strategy=FixedWeights(np.ones(400)),
        )
        assert sol.effective_sample_size == pytest.approx(400.0)

    def test_summary_and_repr(self, two_confounders):
        sol = estimate_weights(
            two_confounders, exposure="exposure", covariates=("x1", "x2"),
            strategy=FixedWeights(np.ones(400)),
        )
        assert "Exposure weights: fixed" in sol.summary()
        assert repr(sol).startswith("WeightSolution(strategy='fixed', n=400")


# ═══════════════════════════════════════════════════════════════════════
# Input validation
# ═══════════════════════════════════════════════════════════════════════


class TestInputs:

    def test_missing_exposure(self, three_subject_daily):
        intervals = build_intervals(three_subject_daily)
        with pytest.raises(MalformedCohort, match="ImputationPolicy") as info:
            estimate_weights(intervals, exposure="fluids", covariates=("severity",))
        assert info.value.subject == "A"

    def test_missing_confounder(self, three_subject_daily):
        intervals = build_intervals(
            three_subject_daily, imputation=CarryForward(["fluids"]),
        )
        with pytest.raises(MalformedCohort, match="severity"):
            estimate_weights(intervals, exposure="fluids", covariates=("severity",))

    def test_constant_exposure(self, confounded):
        data = dict(confounded, exposure=np.ones(500))
        with pytest.raises(ValidationError, match="constant"):
            estimate_weights(data, exposure="exposure", covariates=("x",))

    def test_unknown_column(self, confounded):
        with pytest.raises(ValidationError, match="fluids"):
            estimate_weights(confounded, exposure="fluids", covariates=("x",))

    def test_covariate_spec(self, confounded):
        spec = CovariateSpec.from_mapping({"x_scaled": lambda d: 10.0 * d["x"]})
        sol = estimate_weights(confounded, exposure="exposure", covariates=spec,
                               strategy="balancing")
        assert sol.names == ("x_scaled",)

    def test_carry_forward_cohort(self, three_subject_daily):
        intervals = build_intervals(
            three_subject_daily, imputation=CarryForward(["fluids", "severity"]),
        )
        sol = estimate_weights(
            intervals, exposure="fluids", covariates=("severity",),
            strategy=FixedWeights(np.ones(7)),
        )
        assert_array_equal(sol.pt, intervals.pt)
        assert isinstance(sol.to_frame(), pd.DataFrame)
