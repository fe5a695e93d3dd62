"""
Tests for kaplan_meier() matching R survival::survfit(Surv(time, event) ~ 1).

The same estimator supplies the censoring distribution G(t) of the
Fine-Gray weights, so left limits and step evaluation are checked as well.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pycausalsurv.core.exceptions import ConfigError, MalformedCohort, ValidationError
from pycausalsurv.survival import KMSolution, kaplan_meier
from pycausalsurv.survival._km import kaplan_meier_fit, survival_left_limit


# R:
#   time <- c(1, 2, 3, 4, 5, 6)
#   event <- c(1, 0, 1, 0, 1, 1)
#   survfit(Surv(time, event) ~ 1)
BASIC_TIME = np.array([1, 2, 3, 4, 5, 6], dtype=np.float64)
BASIC_EVENT = np.array([1, 0, 1, 0, 1, 1], dtype=np.float64)


class TestKaplanMeierBasic:

    def test_basic_survival_curve(self):
        """
        R:
            # time n.risk n.event survival std.err
            #    1      6       1    0.833   0.152
            #    3      4       1    0.625   0.196
            #    5      2       1    0.312   0.226
            #    6      1       1    0.000   NaN
        """
        result = kaplan_meier(BASIC_TIME, BASIC_EVENT)

        assert isinstance(result, KMSolution)
        assert result.n_observations == 6
        assert result.n_events_total == 4
        assert_allclose(result.time, [1, 3, 5, 6])
        assert_allclose(result.n_risk, [6, 4, 2, 1])
        assert_allclose(result.survival, [5 / 6, 5 / 8, 5 / 16, 0.0], rtol=1e-10)
        assert result.se[0] == pytest.approx(np.sqrt((5 / 6) ** 2 / 30), rel=1e-10)

    def test_tied_events(self):
        result = kaplan_meier([1, 1, 2, 2, 3], [1, 1, 1, 1, 1])
        assert_allclose(result.n_events, [2, 2, 1])
        assert_allclose(result.survival, [3 / 5, 1 / 5, 0.0], rtol=1e-10)

    def test_all_censored(self):
        result = kaplan_meier([1, 2, 3], [0, 0, 0])
        assert len(result.time) == 0
        assert result.median_survival is None

    def test_median(self):
        assert kaplan_meier(BASIC_TIME, BASIC_EVENT).median_survival == pytest.approx(5.0)

    def test_ci_ordering(self):
        for conf_type in ("log", "plain", "log-log"):
            result = kaplan_meier(BASIC_TIME, BASIC_EVENT, conf_type=conf_type)
            assert result.conf_type == conf_type
            assert np.all(result.ci_lower >= 0)
            assert np.all(result.ci_upper <= 1)
            mask = result.survival > 0
            assert np.all(result.ci_lower[mask] <= result.survival[mask] + 1e-12)
            assert np.all(result.ci_upper[mask] >= result.survival[mask] - 1e-12)


class TestStepEvaluation:

    def test_survival_at_is_right_continuous(self):
        result = kaplan_meier(BASIC_TIME, BASIC_EVENT)
        assert_allclose(
            result.survival_at([0.5, 1.0, 2.0, 3.0, 10.0]),
            [1.0, 5 / 6, 5 / 6, 5 / 8, 0.0],
        )

    def test_left_limit(self):
        params = kaplan_meier_fit(BASIC_TIME, BASIC_EVENT)
        assert_allclose(
            survival_left_limit(params, np.array([1.0, 3.0, 3.5])),
            [1.0, 5 / 6, 5 / 8],
        )

    def test_censoring_distribution(self):
        """Reversing the indicator gives G(t), as used by the Fine-Gray weights."""
        params = kaplan_meier_fit(BASIC_TIME, 1.0 - BASIC_EVENT)
        assert_allclose(params.time, [2, 4])
        assert_allclose(params.survival, [4 / 5, 4 / 5 * 2 / 3])


class TestKaplanMeierSolution:

    def test_summary_and_repr(self):
        result = kaplan_meier(BASIC_TIME, BASIC_EVENT)
        s = result.summary()
        assert "kaplan_meier()" in s
        assert "n.risk" in s
        assert "median survival" in s
        assert "KMSolution(n=6" in repr(result)

    def test_to_frame(self):
        frame = kaplan_meier(BASIC_TIME, BASIC_EVENT).to_frame()
        assert list(frame.columns) == [
            "time", "n_risk", "n_events", "survival", "se", "ci_lower", "ci_upper",
        ]
        assert len(frame) == 4

    def test_backend_and_timing(self):
        result = kaplan_meier(BASIC_TIME, BASIC_EVENT)
        assert result.backend_name == "cpu_km"
        assert result.timing is not None


class TestKaplanMeierValidation:

    @pytest.mark.parametrize("conf_level", [0.0, 1.0, -0.5])
    def test_invalid_conf_level(self, conf_level):
        with pytest.raises(ConfigError, match="conf_level"):
            kaplan_meier(BASIC_TIME, BASIC_EVENT, conf_level=conf_level)

    def test_invalid_conf_type(self):
        with pytest.raises(ConfigError, match="conf_type"):
            kaplan_meier(BASIC_TIME, BASIC_EVENT, conf_type="invalid")

    def test_invalid_event_values(self):
        with pytest.raises(MalformedCohort, match="0 and 1"):
            kaplan_meier([1, 2, 3], [0, 1, 2])

    def test_mismatched_lengths(self):
        with pytest.raises(MalformedCohort):
            kaplan_meier([1, 2, 3], [1, 0])

    def test_empty_input(self):
        with pytest.raises(ValidationError, match="at least one"):
            kaplan_meier([], [])
