"""
Counterfactual assignments.

An assignment is any callable mapping a column mapping (e.g. an
IntervalSolution) to another column mapping holding the counterfactual
values. The helpers below override one column and pass every other column
through unchanged, so derived covariates in a CovariateSpec see the
assigned value.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

import numpy as np

from pycausalsurv.core.exceptions import ConfigError, ValidationError

Assignment = Callable[[Mapping[str, Any]], Mapping[str, Any]]


class ColumnOverride(Mapping):
    """Read-only view of ``data`` with some columns replaced."""

    def __init__(self, data: Mapping[str, Any], overrides: Mapping[str, Any]):
        self._data = data
        self._overrides = dict(overrides)

    def __getitem__(self, key: str) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        return self._data[key]

    def __iter__(self):
        seen = set()
        for key in list(self._data.keys()) + list(self._overrides):
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self._data.keys()) | set(self._overrides))

    def __repr__(self) -> str:
        return f"ColumnOverride(overrides={sorted(self._overrides)})"


def _observed(data: Mapping[str, Any], name: str) -> np.ndarray:
    try:
        return np.asarray(data[name], dtype=np.float64)
    except KeyError as e:
        raise ValidationError(f"assignment column '{name}' not found in data") from e


def set_to(name: str, value: float) -> Assignment:
    """Assign every row the constant ``value`` for column ``name``."""
    value = float(value)

    def assign(data: Mapping[str, Any]) -> Mapping[str, Any]:
        observed = _observed(data, name)
        return ColumnOverride(data, {name: np.full(observed.shape, value)})

    assign.__name__ = f"set_{name}_to_{value:g}"
    return assign


def set_to_quantile(name: str, q: float) -> Assignment:
    """Assign every row the ``q`` quantile of the observed column."""
    if not 0.0 <= q <= 1.0:
        raise ConfigError(f"quantile must be in [0, 1], got {q}", option="q", value=q)

    def assign(data: Mapping[str, Any]) -> Mapping[str, Any]:
        observed = _observed(data, name)
        value = np.quantile(observed[np.isfinite(observed)], q)
        return ColumnOverride(data, {name: np.full(observed.shape, value)})

    assign.__name__ = f"set_{name}_to_q{q:g}"
    return assign


def set_to_median(name: str) -> Assignment:
    """Assign every row the observed median of column ``name``."""
    return set_to_quantile(name, 0.5)


def identity(data: Mapping[str, Any]) -> Mapping[str, Any]:
    """The observed covariates, unchanged."""
    return data
