"""
WeightDesign: immutable exposure / confounder data for weight estimation.

The weighting strategies need complete exposure and confounder histories.
Missing values are not imputed here; they must be resolved by an
ImputationPolicy before intervals are built.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pycausalsurv.core.covariates import CovariateSpec, column
from pycausalsurv.core.exceptions import MalformedCohort, ValidationError


@dataclass(frozen=True)
class WeightDesign:
    """Exposure and confounders aligned with interval rows.

    Parameters
    ----------
    pt : NDArray
        (n,) subject identifiers.
    day : NDArray
        (n,) interval stop.
    exposure : NDArray
        (n,) continuous exposure.
    X : NDArray
        (n, p) confounder matrix.
    exposure_name : str
    names : tuple of str
        Confounder names.
    """

    pt: NDArray
    day: NDArray
    exposure: NDArray
    X: NDArray
    exposure_name: str
    names: tuple[str, ...]

    @classmethod
    def from_intervals(
        cls,
        intervals,
        exposure: str,
        covariates: CovariateSpec,
    ) -> WeightDesign:
        """Resolve exposure and confounders from an interval dataset.

        Raises
        ------
        MalformedCohort
            Missing or non-finite exposure / confounder values.
        ValidationError
            Constant exposure or no rows.
        """
        day = np.asarray(intervals["stop"], dtype=np.float64).ravel()
        if len(day) == 0:
            raise ValidationError("cannot estimate weights on an empty interval set")

        a = np.asarray(column(exposure)(intervals), dtype=np.float64).ravel()
        X = covariates.matrix(intervals)
        pt = np.asarray(intervals["pt"])

        bad_a = ~np.isfinite(a)
        if np.any(bad_a):
            first = pt[np.flatnonzero(bad_a)[0]]
            raise MalformedCohort(
                f"exposure '{exposure}' has {int(np.sum(bad_a))} missing or "
                f"non-finite value(s); apply an ImputationPolicy first",
                subject=first,
            )
        bad_x = ~np.all(np.isfinite(X), axis=1)
        if np.any(bad_x):
            first = pt[np.flatnonzero(bad_x)[0]]
            cols = [nm for j, nm in enumerate(covariates.names)
                    if not np.all(np.isfinite(X[:, j]))]
            raise MalformedCohort(
                f"confounders {cols} have missing or non-finite values in "
                f"{int(np.sum(bad_x))} row(s); apply an ImputationPolicy first",
                subject=first,
            )
        if not np.std(a) > 0:
            raise ValidationError(f"exposure '{exposure}' is constant")

        return cls(
            pt=pt,
            day=day,
            exposure=a,
            X=X,
            exposure_name=exposure,
            names=covariates.names,
        )

    @property
    def n(self) -> int:
        return len(self.exposure)

    @property
    def p(self) -> int:
        return self.X.shape[1]
