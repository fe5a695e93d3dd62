"""
DailyDesign: immutable, validated container for per-subject daily records.

Wraps subject ids, days, outcome indicators and covariate columns.
Validates structure at construction time; the interval builder trusts
clean data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pycausalsurv.core.exceptions import MalformedCohort, ValidationError

REQUIRED_COLUMNS = ("pt", "day", "death", "discharge")


@dataclass(frozen=True)
class DailyDesign:
    """Validated daily records.

    Parameters
    ----------
    pt : NDArray
        (n,) subject identifiers.
    day : NDArray
        (n,) day index, distinct within each subject. Rows may come in any
        order.
    death : NDArray
        (n,) death indicator in {0, 1, NaN}.
    discharge : NDArray
        (n,) discharge indicator in {0, 1, NaN}.
    covariates : dict
        Covariate name -> (n,) float array (NaN allowed).
    codes : NDArray
        (n,) integer subject code in first-appearance order.
    """

    pt: NDArray
    day: NDArray
    death: NDArray
    discharge: NDArray
    covariates: dict[str, NDArray]
    codes: NDArray
    subjects: NDArray

    @classmethod
    def from_dataframe(
        cls,
        daily: pd.DataFrame,
        covariates: Sequence[str] | None = None,
    ) -> DailyDesign:
        """Create and validate daily records from a DataFrame.

        Parameters
        ----------
        daily : DataFrame
            Columns ``pt, day, death, discharge`` plus covariates.
        covariates : sequence of str or None
            Covariate columns to carry. None keeps every other column.

        Raises
        ------
        ValidationError
            If required columns are missing or values are non-numeric.
        MalformedCohort
            If a subject has a repeated day, a row flags both
            death and discharge, a subject has more than one death row, or
            a death row is not the subject's last row.
        """
        missing = [c for c in REQUIRED_COLUMNS if c not in daily.columns]
        if missing:
            raise ValidationError(
                f"daily records are missing required columns {missing}"
            )
        if len(daily) == 0:
            raise ValidationError("daily records must have at least one row")

        if covariates is None:
            covariates = [c for c in daily.columns if c not in REQUIRED_COLUMNS]
        else:
            absent = [c for c in covariates if c not in daily.columns]
            if absent:
                raise ValidationError(
                    f"covariate columns {absent} not in daily records"
                )

        pt = daily["pt"].to_numpy()
        if pd.isna(daily["pt"]).any():
            raise MalformedCohort("subject id 'pt' contains missing values")

        try:
            day = daily["day"].to_numpy(dtype=np.float64)
            death = daily["death"].to_numpy(dtype=np.float64)
            discharge = daily["discharge"].to_numpy(dtype=np.float64)
            cov_arrays = {
                c: daily[c].to_numpy(dtype=np.float64) for c in covariates
            }
        except (TypeError, ValueError) as e:
            raise ValidationError(f"daily records contain non-numeric values: {e}") from e

        codes, subjects = pd.factorize(pt, sort=False)

        _check_days(day, codes, subjects)
        _check_outcomes(death, discharge, day, codes, subjects)

        return cls(
            pt=pt,
            day=day,
            death=death,
            discharge=discharge,
            covariates=cov_arrays,
            codes=codes,
            subjects=np.asarray(subjects),
        )

    @property
    def n(self) -> int:
        """Number of daily records."""
        return len(self.day)

    @property
    def n_subjects(self) -> int:
        return len(self.subjects)

    @property
    def covariate_names(self) -> tuple[str, ...]:
        return tuple(self.covariates)


def _check_days(day: NDArray, codes: NDArray, subjects) -> None:
    if np.any(np.isnan(day)):
        bad = subjects[codes[np.isnan(day)][0]]
        raise MalformedCohort(f"subject {bad!r} has a missing day", subject=bad)

    order = np.lexsort((day, codes))
    c_sorted = codes[order]
    d_sorted = day[order]
    repeated = (c_sorted[1:] == c_sorted[:-1]) & (np.diff(d_sorted) == 0)
    if np.any(repeated):
        bad = subjects[c_sorted[1:][repeated][0]]
        raise MalformedCohort(
            f"subject {bad!r} has duplicate day values", subject=bad
        )


def _check_outcomes(
    death: NDArray, discharge: NDArray, day: NDArray, codes: NDArray, subjects
) -> None:
    for name, arr in (("death", death), ("discharge", discharge)):
        observed = arr[~np.isnan(arr)]
        if not np.all(np.isin(observed, [0.0, 1.0])):
            raise MalformedCohort(
                f"{name} must contain only 0, 1 or missing, "
                f"got {np.unique(observed)}"
            )

    both = (death == 1) & (discharge == 1)
    if np.any(both):
        bad = subjects[codes[both][0]]
        raise MalformedCohort(
            f"subject {bad!r} has death and discharge flagged on the same day",
            subject=bad,
        )

    deaths_per_subject = np.bincount(codes, weights=(death == 1).astype(np.float64), minlength=len(subjects))
    if np.any(deaths_per_subject > 1):
        bad = subjects[int(np.argmax(deaths_per_subject > 1))]
        raise MalformedCohort(
            f"subject {bad!r} has more than one death record", subject=bad
        )

    # Position of each row within its subject vs the subject's row count
    order = np.lexsort((day, codes))
    counts = np.bincount(codes, minlength=len(subjects))
    is_last = np.zeros(len(codes), dtype=bool)
    last_idx = np.cumsum(counts) - 1
    is_last[order[last_idx[counts > 0]]] = True
    non_terminal_death = (death == 1) & ~is_last
    if np.any(non_terminal_death):
        bad = subjects[codes[non_terminal_death][0]]
        raise MalformedCohort(
            f"subject {bad!r} has records after death", subject=bad
        )
