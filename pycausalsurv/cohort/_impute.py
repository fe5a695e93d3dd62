"""
Imputation policies for daily records.

An ImputationPolicy is an explicit transformation applied to the daily
record table before interval construction. The estimators never impute:
the weighting strategies require complete exposure and covariate histories
and reject missing values.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

import pandas as pd

from pycausalsurv.core.exceptions import ValidationError

OUTCOME_COLUMNS = ("death", "discharge")


@runtime_checkable
class ImputationPolicy(Protocol):
    """Transformation of a daily record table; must not reorder rows."""

    def apply(self, daily: pd.DataFrame) -> pd.DataFrame:
        ...


class NoImputation:
    """Identity policy. Returns a copy so callers never share frames."""

    def apply(self, daily: pd.DataFrame) -> pd.DataFrame:
        return daily.copy()

    def __repr__(self) -> str:
        return "NoImputation()"


class CarryForward:
    """Last observation carried forward within each subject.

    Rows are taken in the order given; ``build_intervals`` sorts them by
    subject and day first. Values never leak across subjects and leading
    gaps stay missing.

    Parameters
    ----------
    columns : sequence of str or None
        Columns to fill. None fills every column except the subject id,
        day and the outcome indicators.
    id_col : str
        Subject identifier column.
    """

    def __init__(self, columns: Sequence[str] | None = None, *, id_col: str = "pt"):
        self.columns = tuple(columns) if columns is not None else None
        self.id_col = id_col

    def _targets(self, daily: pd.DataFrame) -> list[str]:
        if self.columns is not None:
            missing = [c for c in self.columns if c not in daily.columns]
            if missing:
                raise ValidationError(
                    f"CarryForward: columns {missing} not in daily records"
                )
            return list(self.columns)
        reserved = {self.id_col, "day", *OUTCOME_COLUMNS}
        return [c for c in daily.columns if c not in reserved]

    def apply(self, daily: pd.DataFrame) -> pd.DataFrame:
        if self.id_col not in daily.columns:
            raise ValidationError(
                f"CarryForward: id column '{self.id_col}' not in daily records"
            )
        out = daily.copy()
        targets = self._targets(out)
        if targets:
            out[targets] = out.groupby(self.id_col, sort=False)[targets].ffill()
        return out

    def __repr__(self) -> str:
        return f"CarryForward(columns={self.columns!r})"
