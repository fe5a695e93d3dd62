"""
Tests for input validation helpers.
"""

import numpy as np
import pytest

from pycausalsurv.core.exceptions import (
    ConfigError,
    DimensionError,
    InvalidWeight,
    ValidationError,
)
from pycausalsurv.core.validation import (
    check_2d,
    check_array,
    check_consistent_length,
    check_finite,
    check_quantile_bounds,
    check_weights,
)


class TestCheckArray:

    def test_list_to_float_array(self):
        arr = check_array([1, 2, 3], "x")
        assert arr.dtype == np.float64
        np.testing.assert_array_equal(arr, [1.0, 2.0, 3.0])

    def test_bool_accepted(self):
        arr = check_array(np.array([True, False]), "event")
        np.testing.assert_array_equal(arr, [1.0, 0.0])

    def test_rejects_mixed_types(self):
        with pytest.raises(ValidationError, match="x"):
            check_array([1, "a", None], "x")

    def test_rejects_strings(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(np.array(["a", "b"]), "x")


class TestCheckFinite:

    def test_finite_passes(self):
        check_finite(np.array([1.0, 2.0]), "x")

    def test_nan_rejected(self):
        with pytest.raises(ValidationError, match="1 NaN"):
            check_finite(np.array([1.0, np.nan]), "x")

    def test_inf_rejected(self):
        with pytest.raises(ValidationError, match="1 Inf"):
            check_finite(np.array([1.0, np.inf]), "x")


class TestCheckShape:

    def test_check_2d(self):
        check_2d(np.zeros((3, 1)), "X")
        with pytest.raises(DimensionError, match="X"):
            check_2d(np.zeros(3), "X")

    def test_consistent_length(self):
        check_consistent_length(np.zeros(3), np.zeros((3, 2)), names=("a", "b"))
        with pytest.raises(DimensionError, match="a=3, b=2"):
            check_consistent_length(np.zeros(3), np.zeros(2), names=("a", "b"))


class TestCheckWeights:

    def test_valid_weights_pass(self):
        check_weights(np.array([0.0, 0.5, 2.0]))

    def test_negative_rejected(self):
        with pytest.raises(InvalidWeight) as info:
            check_weights(np.array([1.0, -0.1, 2.0]))
        assert info.value.n_invalid == 1
        assert info.value.n_total == 3

    def test_nan_and_inf_rejected(self):
        with pytest.raises(InvalidWeight) as info:
            check_weights(np.array([np.nan, np.inf, 1.0]))
        assert info.value.n_invalid == 2


class TestCheckQuantileBounds:

    def test_valid_bounds(self):
        check_quantile_bounds(0.01, 0.99)

    @pytest.mark.parametrize("lo, hi", [
        (0.5, 0.5),
        (0.9, 0.1),
        (0.0, 0.9),
        (0.1, 1.0),
        (-0.1, 0.5),
    ])
    def test_invalid_bounds(self, lo, hi):
        with pytest.raises(ConfigError):
            check_quantile_bounds(lo, hi)

    def test_non_numeric(self):
        with pytest.raises(ConfigError, match="numeric"):
            check_quantile_bounds("low", 0.9)
