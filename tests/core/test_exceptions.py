"""
Tests for the pycausalsurv exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyCausalSurvError)
    - Diagnostic attributes on MalformedCohort, ConfigError, InvalidWeight,
      NonConvergence, BalanceNotAchieved, InsufficientEvents
    - Default attribute values (None for optional attributes)
"""

import numpy as np
import pytest

from pycausalsurv.core.exceptions import (
    BalanceNotAchieved,
    ConfigError,
    ConvergenceError,
    DimensionError,
    InsufficientEvents,
    InvalidWeight,
    MalformedCohort,
    NonConvergence,
    NumericalError,
    PyCausalSurvError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyCausalSurvError."""

    @pytest.mark.parametrize("exc, parent", [
        (DimensionError("wrong shape"), ValidationError),
        (MalformedCohort("bad cohort"), ValidationError),
        (ConfigError("bad option"), ValidationError),
        (InvalidWeight("bad weight", n_invalid=1, n_total=2), NumericalError),
        (NonConvergence("no", iterations=3), ConvergenceError),
        (BalanceNotAchieved("no", iterations=3), ConvergenceError),
        (InsufficientEvents("few", n_events=0, min_events=5), PyCausalSurvError),
    ])
    def test_parent_class(self, exc, parent):
        with pytest.raises(parent):
            raise exc

    def test_all_are_pycausalsurv_errors(self):
        for exc in (
            ValidationError("x"), NumericalError("x"),
            ConvergenceError("x", iterations=0),
        ):
            assert isinstance(exc, PyCausalSurvError)

    def test_malformed_cohort_is_not_numerical(self):
        assert not isinstance(MalformedCohort("x"), NumericalError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:

    def test_malformed_cohort_subject(self):
        e = MalformedCohort("subject 7 has non-monotonic days", subject=7)
        assert e.subject == 7
        assert "subject 7" in str(e)

    def test_malformed_cohort_default_subject(self):
        assert MalformedCohort("x").subject is None

    def test_config_error_option_value(self):
        e = ConfigError("bad", option="truncation_quantiles", value=(0.5, 0.5))
        assert e.option == "truncation_quantiles"
        assert e.value == (0.5, 0.5)

    def test_invalid_weight_counts(self):
        e = InvalidWeight("bad", n_invalid=3, n_total=10)
        assert e.n_invalid == 3
        assert e.n_total == 10

    def test_non_convergence_carries_last_iterate(self):
        beta = np.array([0.1, -0.2])
        e = NonConvergence(
            "did not converge", iterations=25, coefficients=beta,
            score_norm=1e-3, final_change=1e-6, reason="max_iterations",
            threshold=1e-9,
        )
        assert e.iterations == 25
        np.testing.assert_array_equal(e.coefficients, beta)
        assert e.score_norm == 1e-3
        assert e.final_change == 1e-6
        assert e.reason == "max_iterations"
        assert e.threshold == 1e-9

    def test_non_convergence_defaults(self):
        e = NonConvergence("x", iterations=1)
        assert e.coefficients is None
        assert e.score_norm is None
        assert e.reason is None

    def test_balance_not_achieved(self):
        e = BalanceNotAchieved("imbalanced", iterations=120, statistic=0.3,
                               threshold=0.1, strategy="boosted")
        assert e.statistic == 0.3
        assert e.threshold == 0.1
        assert e.strategy == "boosted"
        assert e.reason == "imbalance"
        assert e.iterations == 120

    def test_insufficient_events(self):
        e = InsufficientEvents("too few", n_events=2, min_events=5)
        assert e.n_events == 2
        assert e.min_events == 5
