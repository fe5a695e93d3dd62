"""
Fine-Gray subdistribution hazard regression.

The subdistribution risk set at time t keeps every subject who has not yet
had the target event, including subjects who already had the competing
event. Those subjects are kept with a weight equal to the conditional
probability of still being uncensored,

    w_i(t) = G(t-) / G(T_i-),

where G is the Kaplan-Meier estimate of the censoring distribution and T_i
the competing-event time. The expansion below writes this as counting-process
rows, each with constant weight, so the weighted Cox core fits the model
unchanged (the same construction as R's survival::finegray):

    target event / censored at T_i:  (0, T_i]                    weight 1
    competing event at T_i:           (0, T_i]                    weight 1
                                      (T_i, t_1], (t_1, t_2], ... weight G(t_k-)/G(T_i-)

with t_k the distinct target event times after T_i. Rows whose weight has
dropped to zero are omitted.

References:
    Fine, J. P. & Gray, R. J. (1999). A proportional hazards model for the
        subdistribution of a competing risk. JASA, 94(446), 496-509.
    Geskus, R. B. (2011). Cause-specific cumulative incidence estimation
        and the Fine and Gray model under both left truncation and right
        censoring. Biometrics, 67(1), 39-49.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pycausalsurv.survival._common import KMParams
from pycausalsurv.survival._km import kaplan_meier_fit, survival_left_limit


@dataclass(frozen=True)
class ExpandedData:
    """Counting-process rows of the subdistribution risk sets."""

    start: NDArray
    stop: NDArray
    event: NDArray       # 1 = target event
    X: NDArray
    weights: NDArray
    subject: NDArray     # row -> subject index, for the clustered variance
    censoring: KMParams


def expand_risk_sets(
    time: NDArray,
    event_type: NDArray,
    X: NDArray,
    target: int = 1,
    competing: int = 2,
) -> ExpandedData:
    """Build the weighted subdistribution rows for one-row-per-subject data."""
    n = len(time)
    is_target = event_type == target
    is_competing = event_type == competing
    is_censored = ~is_target & ~is_competing

    censoring = kaplan_meier_fit(time, is_censored.astype(np.float64))
    target_times = np.unique(time[is_target])

    starts = [np.zeros(n)]
    stops = [time]
    events = [is_target.astype(np.float64)]
    weights = [np.ones(n)]
    subjects = [np.arange(n)]

    g_at_target = survival_left_limit(censoring, target_times)

    for i in np.flatnonzero(is_competing):
        later = target_times > time[i]
        if not np.any(later):
            continue
        g_own = survival_left_limit(censoring, time[i:i + 1])[0]
        if g_own <= 0:
            continue
        t_k = target_times[later]
        w_k = g_at_target[later] / g_own
        keep = w_k > 0
        if not np.any(keep):
            continue
        t_k = t_k[keep]
        w_k = w_k[keep]
        starts.append(np.concatenate(([time[i]], t_k[:-1])))
        stops.append(t_k)
        events.append(np.zeros(len(t_k)))
        weights.append(w_k)
        subjects.append(np.full(len(t_k), i))

    subject = np.concatenate(subjects)
    return ExpandedData(
        start=np.concatenate(starts),
        stop=np.concatenate(stops),
        event=np.concatenate(events),
        X=X[subject],
        weights=np.concatenate(weights),
        subject=subject,
        censoring=censoring,
    )
