"""
Input validation utilities for pycausalsurv.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pycausalsurv.core.exceptions import (
    ConfigError,
    DimensionError,
    InvalidWeight,
    ValidationError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Rejects inputs that result in object or non-numeric dtype (mixed
    types, strings, datetimes).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with float64 dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if not (np.issubdtype(result.dtype, np.number) or result.dtype == np.bool_):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    return result.astype(np.float64, copy=False)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_weights(weights: NDArray[np.floating[Any]], name: str = "weights") -> None:
    """
    Verify every weight is finite and non-negative.

    Raises:
        InvalidWeight: If any weight is NaN, infinite or negative
    """
    bad = ~np.isfinite(weights) | (weights < 0)
    n_bad = int(np.sum(bad))
    if n_bad > 0:
        raise InvalidWeight(
            f"{name}: {n_bad} of {weights.shape[0]} weights are negative or non-finite",
            n_invalid=n_bad,
            n_total=int(weights.shape[0]),
        )


def check_quantile_bounds(lower: float, upper: float, name: str = "quantiles") -> None:
    """
    Verify a pair of quantile levels satisfies 0 < lower < upper < 1.

    Raises:
        ConfigError: If the bounds are out of range or not strictly ordered
    """
    try:
        lo = float(lower)
        hi = float(upper)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"{name}: bounds must be numeric, got ({lower!r}, {upper!r})",
            option=name, value=(lower, upper),
        ) from e

    if not (0.0 < lo < 1.0 and 0.0 < hi < 1.0):
        raise ConfigError(
            f"{name}: bounds must lie in (0, 1), got ({lo}, {hi})",
            option=name, value=(lower, upper),
        )
    if not lo < hi:
        raise ConfigError(
            f"{name}: lower bound must be strictly below upper bound, "
            f"got ({lo}, {hi})",
            option=name, value=(lower, upper),
        )
