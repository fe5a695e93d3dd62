"""
Parameter payloads for counterfactual evaluation results.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class CounterfactualParams:
    """Observed and counterfactual population survival curves.

    Every curve starts at time 0 with survival 1 and is a right-continuous
    step function with jumps at the model's baseline event times.
    """

    time: NDArray                      # (m+1,) 0 followed by event times
    observed_survival: NDArray         # (m+1,)
    counterfactual_survival: NDArray   # (m+1,)
    observed_mortality: NDArray        # (m+1,) 1 - observed survival
    counterfactual_mortality: NDArray  # (m+1,)
    attributable_mortality: NDArray    # (m+1,) observed - counterfactual mortality
    names: tuple[str, ...]             # model covariates
    n_intervals: int
    weighted: bool
