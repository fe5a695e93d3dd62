"""
CovariateSpec: explicit, ordered covariate extraction.

Models select covariates through a CovariateSpec instead of formula strings.
A spec is an ordered tuple of named extraction functions. Each function
receives a column mapping (an IntervalSolution, a SubjectSolution, a pandas
DataFrame or a plain dict of arrays) and returns one numeric column. The spec
is built once when an analysis is configured and then applied vectorised to
whole datasets.

Usage:
    spec = CovariateSpec.from_columns("fluids_cumulative", "severity")
    X = spec.matrix(intervals)          # (n, 2)

    spec = CovariateSpec((
        Covariate("fluids_l", lambda d: np.asarray(d["fluids_cumulative"]) / 1000),
        Covariate("severity", column("severity")),
    ))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

import numpy as np
from numpy.typing import NDArray

from pycausalsurv.core.exceptions import ConfigError, DimensionError, ValidationError

Extractor = Callable[[Mapping[str, Any]], Any]


def column(name: str) -> Extractor:
    """Extractor returning the named column unchanged."""

    def extract(data: Mapping[str, Any]) -> Any:
        try:
            return data[name]
        except KeyError as e:
            raise ValidationError(
                f"covariate column '{name}' not found in data"
            ) from e

    extract.__name__ = f"column_{name}"
    return extract


@dataclass(frozen=True)
class Covariate:
    """A single named numeric predictor."""

    name: str
    extract: Extractor


@dataclass(frozen=True)
class CovariateSpec:
    """Ordered sequence of named covariate extractors.

    Parameters
    ----------
    covariates : tuple of Covariate
        Predictors in model order. Names must be unique.
    """

    covariates: tuple[Covariate, ...]

    def __post_init__(self) -> None:
        if len(self.covariates) == 0:
            raise ConfigError("CovariateSpec requires at least one covariate",
                              option="covariates", value=())
        names = [c.name for c in self.covariates]
        if len(set(names)) != len(names):
            raise ConfigError(
                f"covariate names must be unique, got {names}",
                option="covariates", value=tuple(names),
            )

    @classmethod
    def from_columns(cls, *names: str) -> CovariateSpec:
        """Spec taking each named column unchanged."""
        return cls(tuple(Covariate(n, column(n)) for n in names))

    @classmethod
    def from_mapping(cls, extractors: Mapping[str, Extractor]) -> CovariateSpec:
        """Spec from an ordered ``{name: extractor}`` mapping."""
        return cls(tuple(Covariate(n, f) for n, f in extractors.items()))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.covariates)

    @property
    def p(self) -> int:
        return len(self.covariates)

    def __len__(self) -> int:
        return len(self.covariates)

    def columns(self, data: Mapping[str, Any]) -> dict[str, NDArray]:
        """Evaluate every extractor; returns ``{name: (n,) float array}``."""
        out: dict[str, NDArray] = {}
        n = None
        for cov in self.covariates:
            values = np.asarray(cov.extract(data), dtype=np.float64).ravel()
            if n is None:
                n = values.shape[0]
            elif values.shape[0] != n:
                raise DimensionError(
                    f"covariate '{cov.name}' has {values.shape[0]} rows, "
                    f"expected {n}"
                )
            out[cov.name] = values
        return out

    def matrix(self, data: Mapping[str, Any]) -> NDArray:
        """Evaluate the spec into an (n, p) design matrix."""
        cols = self.columns(data)
        return np.column_stack([cols[name] for name in self.names])

    def select(self, *names: str) -> CovariateSpec:
        """Sub-spec keeping the named covariates, in the given order."""
        lookup = {c.name: c for c in self.covariates}
        missing = [n for n in names if n not in lookup]
        if missing:
            raise ConfigError(
                f"unknown covariates {missing}; spec has {list(self.names)}",
                option="covariates", value=tuple(names),
            )
        return CovariateSpec(tuple(lookup[n] for n in names))
