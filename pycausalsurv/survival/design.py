"""
CoxDesign: immutable container for counting-process survival data.

Wraps (start, stop], event indicator, covariates, case weights and cluster
labels. Validates inputs at construction time; the Newton-Raphson core
trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pycausalsurv.core.exceptions import DimensionError, MalformedCohort, ValidationError
from pycausalsurv.core.validation import (
    check_2d, check_array, check_consistent_length, check_finite, check_weights,
)


@dataclass(frozen=True)
class CoxDesign:
    """Immutable counting-process data.

    Parameters
    ----------
    start : NDArray
        (n,) interval start; the row is at risk on (start, stop].
    stop : NDArray
        (n,) interval stop; event time when ``event == 1``.
    event : NDArray
        (n,) 1 if the target event occurs at ``stop``, else 0.
    X : NDArray
        (n, p) covariate matrix.
    weights : NDArray
        (n,) non-negative case weights.
    cluster : NDArray or None
        (n,) integer cluster codes for the robust variance.
    names : tuple of str
        Covariate names.
    """

    start: NDArray
    stop: NDArray
    event: NDArray
    X: NDArray
    weights: NDArray
    cluster: NDArray | None
    names: tuple[str, ...]

    @classmethod
    def for_counting_process(
        cls,
        time,
        event,
        X,
        *,
        start=None,
        weights=None,
        cluster=None,
        target: int = 1,
        names=None,
    ) -> CoxDesign:
        """Create and validate counting-process data.

        Parameters
        ----------
        time : array-like
            Interval stop (event or censoring time).
        event : array-like
            Event-type codes; rows equal to ``target`` are events, any
            other code is censoring at ``time``.
        X : array-like
            Covariate matrix (n, p), no intercept.
        start : array-like or None
            Interval start. None means every row starts at 0.
        weights : array-like or None
            Non-negative case weights, default 1.
        cluster : array-like or None
            Cluster labels (e.g. subject ids) for a robust variance.
        target : int
            Event-type code of interest.
        names : sequence of str or None
            Covariate names; defaults to x0, x1, ...

        Raises
        ------
        ValidationError, DimensionError
            Invalid shapes or values.
        MalformedCohort
            If any interval has ``stop <= start``.
        InvalidWeight
            If any weight is negative or non-finite.
        """
        stop = check_array(time, "time").ravel()
        n = len(stop)
        if n == 0:
            raise ValidationError("time must have at least one observation")
        check_finite(stop, "time")

        if start is None:
            start_arr = np.zeros(n, dtype=np.float64)
        else:
            start_arr = check_array(start, "start").ravel()
            check_finite(start_arr, "start")

        codes = check_array(event, "event").ravel()
        check_finite(codes, "event")
        if not np.all(codes == np.round(codes)):
            raise ValidationError("event must contain integer event-type codes")

        X_arr = check_array(X, "X")
        if X_arr.ndim == 1:
            X_arr = X_arr.reshape(-1, 1)
        check_2d(X_arr, "X")
        if not np.all(np.isfinite(X_arr)):
            raise ValidationError(
                "X: contains non-finite values; missing covariates must be "
                "resolved upstream (e.g. CarryForward) before fitting"
            )

        if weights is None:
            w = np.ones(n, dtype=np.float64)
        else:
            w = check_array(weights, "weights").ravel()
            check_weights(w)

        check_consistent_length(
            stop, start_arr, codes, X_arr, w,
            names=("time", "start", "event", "X", "weights"),
        )

        if np.any(stop <= start_arr):
            bad = int(np.sum(stop <= start_arr))
            raise MalformedCohort(
                f"{bad} interval(s) have stop <= start; intervals must be (start, stop]"
            )

        cluster_codes = None
        if cluster is not None:
            labels = np.asarray(cluster).ravel()
            if len(labels) != n:
                raise DimensionError(
                    f"cluster must have {n} elements to match time, got {len(labels)}"
                )
            cluster_codes, _ = pd.factorize(labels, sort=False)
            if np.any(cluster_codes < 0):
                raise ValidationError("cluster contains missing labels")

        p = X_arr.shape[1]
        if names is None:
            names = tuple(f"x{i}" for i in range(p))
        else:
            names = tuple(str(nm) for nm in names)
            if len(names) != p:
                raise DimensionError(
                    f"names has {len(names)} entries but X has {p} columns"
                )

        return cls(
            start=start_arr,
            stop=stop,
            event=(codes == target).astype(np.float64),
            X=X_arr,
            weights=w,
            cluster=cluster_codes,
            names=names,
        )

    @property
    def n(self) -> int:
        """Number of rows (intervals)."""
        return len(self.stop)

    @property
    def p(self) -> int:
        return self.X.shape[1]

    @property
    def n_events(self) -> int:
        """Number of event rows carrying positive weight."""
        return int(np.sum((self.event == 1) & (self.weights > 0)))
