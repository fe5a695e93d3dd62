"""
Tests for counting-process interval construction.

Validates:
    - One interval per daily record, stop = day, start = previous day
    - Rows arriving out of day order are sorted per subject
    - Event type only on each subject's final interval
    - Subjects without any outcome information are dropped with a warning
    - Duplicate days and other structural violations raise MalformedCohort
      naming the subject
    - Running sums (cumulative fluid balance)
    - to_daily() round trip
"""

import numpy as np
import pandas as pd
import pytest

from pycausalsurv.cohort import DEATH, DISCHARGE, CarryForward, build_intervals
from pycausalsurv.core.exceptions import MalformedCohort, ValidationError


# ═══════════════════════════════════════════════════════════════════════
# Three-subject scenario
# ═══════════════════════════════════════════════════════════════════════


class TestThreeSubjects:
    """A dies on day 2, B is discharged on day 2, C dies on day 3."""

    def test_one_interval_per_record(self, three_subject_daily):
        """Seven intervals, one per daily record with stop = day.

        Collapsing A and B to a single interval each would give five, but
        that breaks per-day exposure and the to_daily() rebuild.
        """
        iv = build_intervals(three_subject_daily)
        assert iv.n_intervals == 7
        assert iv.n_subjects == 3
        assert iv.dropped_subjects == ()

    def test_start_stop(self, three_subject_daily):
        iv = build_intervals(three_subject_daily)
        np.testing.assert_array_equal(iv.stop, [1, 2, 1, 2, 1, 2, 3])
        np.testing.assert_array_equal(iv.start, [0, 1, 0, 1, 0, 1, 2])
        assert np.all(iv.start < iv.stop)

    def test_event_types(self, three_subject_daily):
        iv = build_intervals(three_subject_daily)
        np.testing.assert_array_equal(iv.event_type, [0, 1, 0, 2, 0, 0, 1])

    def test_final_interval_per_subject(self, three_subject_daily):
        frame = build_intervals(three_subject_daily).to_frame()
        final = frame.groupby("pt", sort=False)["event_type"].last()
        assert final.to_dict() == {"A": DEATH, "B": DISCHARGE, "C": DEATH}

    def test_event_counts(self, three_subject_daily):
        iv = build_intervals(three_subject_daily)
        assert iv.n_events(DEATH) == 2
        assert iv.n_events(DISCHARGE) == 1
        np.testing.assert_array_equal(iv.event(DEATH), [0, 1, 0, 0, 0, 0, 1])

    def test_covariates_at_stop(self, three_subject_daily):
        iv = build_intervals(three_subject_daily)
        assert iv.covariate_names == ("fluids", "severity")
        np.testing.assert_array_equal(iv["severity"][:2], [5.0, np.nan])

    def test_mapping_access(self, three_subject_daily):
        iv = build_intervals(three_subject_daily)
        assert "stop" in iv
        assert "severity" in iv
        assert "lactate" not in iv
        with pytest.raises(KeyError, match="lactate"):
            iv["lactate"]

    def test_summary_and_repr(self, three_subject_daily):
        iv = build_intervals(three_subject_daily)
        assert "deaths= 2" in iv.summary()
        assert repr(iv) == "IntervalSolution(subjects=3, intervals=7)"


# ═══════════════════════════════════════════════════════════════════════
# Ordering and late entry
# ═══════════════════════════════════════════════════════════════════════


class TestOrdering:

    def test_subject_major_order(self):
        daily = pd.DataFrame({
            "pt": [2, 1, 2, 1],
            "day": [1, 1, 2, 2],
            "death": [0, 0, 0, 1],
            "discharge": [0, 0, 1, 0],
        })
        iv = build_intervals(daily)
        np.testing.assert_array_equal(iv.pt, [2, 2, 1, 1])
        np.testing.assert_array_equal(iv.event_type, [0, 2, 0, 1])

    def test_rows_out_of_day_order(self, three_subject_daily):
        shuffled = three_subject_daily.iloc[[1, 0, 3, 6, 2, 4, 5]]
        iv = build_intervals(shuffled, cumulative=("fluids",))
        expected = build_intervals(three_subject_daily, cumulative=("fluids",))
        pd.testing.assert_frame_equal(iv.to_frame(), expected.to_frame())
        np.testing.assert_array_equal(iv.pt[:2], ["A", "A"])
        np.testing.assert_array_equal(iv.start[:2], [0, 1])
        np.testing.assert_array_equal(iv.stop[:2], [1, 2])
        np.testing.assert_array_equal(iv.event_type[:2], [0, DEATH])

    def test_carry_forward_follows_day_order(self):
        daily = pd.DataFrame({
            "pt": [1, 1, 1],
            "day": [3, 1, 2],
            "severity": [np.nan, 4.0, np.nan],
            "death": [1, 0, 0],
            "discharge": [0, 0, 0],
        })
        iv = build_intervals(daily, imputation=CarryForward(["severity"]))
        np.testing.assert_array_equal(iv.stop, [1, 2, 3])
        np.testing.assert_array_equal(iv["severity"], [4.0, 4.0, 4.0])
        np.testing.assert_array_equal(iv.event_type, [0, 0, DEATH])

    def test_late_entry_and_gaps(self):
        daily = pd.DataFrame({
            "pt": [1, 1, 1],
            "day": [5, 6, 9],
            "death": [0, 0, 0],
            "discharge": [0, 0, 0],
        })
        iv = build_intervals(daily)
        np.testing.assert_array_equal(iv.start, [4, 5, 6])
        np.testing.assert_array_equal(iv.stop, [5, 6, 9])
        np.testing.assert_array_equal(iv.event_type, [0, 0, 0])

    def test_partially_missing_outcomes_kept(self):
        daily = pd.DataFrame({
            "pt": [1, 1],
            "day": [1, 2],
            "death": [np.nan, 1],
            "discharge": [np.nan, 0],
        })
        iv = build_intervals(daily)
        np.testing.assert_array_equal(iv.event_type, [0, 1])


# ═══════════════════════════════════════════════════════════════════════
# Dropped subjects
# ═══════════════════════════════════════════════════════════════════════


class TestDroppedSubjects:

    def test_no_outcome_information(self, three_subject_daily):
        extra = pd.DataFrame({
            "pt": ["D", "D"], "day": [1, 2],
            "fluids": [1.0, 1.0], "severity": [2.0, 2.0],
            "death": [np.nan, np.nan], "discharge": [np.nan, np.nan],
        })
        daily = pd.concat([three_subject_daily, extra], ignore_index=True)
        with pytest.warns(RuntimeWarning, match="dropped"):
            iv = build_intervals(daily)
        assert iv.dropped_subjects == ("D",)
        assert iv.n_subjects == 3
        assert iv.n_intervals == 7
        assert "D" not in set(iv.pt)
        assert iv._result.has_warning("dropped")


# ═══════════════════════════════════════════════════════════════════════
# Malformed input
# ═══════════════════════════════════════════════════════════════════════


class TestMalformed:

    def _daily(self, **overrides):
        base = {
            "pt": [1, 1, 2, 2],
            "day": [1, 2, 1, 2],
            "death": [0, 1, 0, 0],
            "discharge": [0, 0, 0, 1],
        }
        base.update(overrides)
        return pd.DataFrame(base)

    def test_valid_baseline(self):
        assert build_intervals(self._daily()).n_intervals == 4

    def test_repeated_day(self):
        with pytest.raises(MalformedCohort, match="duplicate day") as info:
            build_intervals(self._daily(day=[1, 1, 1, 2]))
        assert info.value.subject == 1

    def test_repeated_day_out_of_order(self):
        with pytest.raises(MalformedCohort, match="duplicate day") as info:
            build_intervals(self._daily(day=[1, 2, 2, 2], death=[0, 0, 0, 0]))
        assert info.value.subject == 2

    def test_death_and_discharge_same_day(self):
        with pytest.raises(MalformedCohort, match="same day") as info:
            build_intervals(self._daily(discharge=[0, 1, 0, 1]))
        assert info.value.subject == 1

    def test_records_after_death(self):
        with pytest.raises(MalformedCohort, match="after death"):
            build_intervals(self._daily(death=[1, 0, 0, 0]))

    def test_two_deaths(self):
        with pytest.raises(MalformedCohort, match="more than one death"):
            build_intervals(self._daily(death=[1, 1, 0, 0]))

    def test_bad_indicator_value(self):
        with pytest.raises(MalformedCohort, match="death"):
            build_intervals(self._daily(death=[0, 2, 0, 0]))

    def test_missing_column(self):
        with pytest.raises(ValidationError, match="discharge"):
            build_intervals(self._daily().drop(columns="discharge"))

    def test_not_a_dataframe(self):
        with pytest.raises(ValidationError, match="DataFrame"):
            build_intervals({"pt": [1]})

    def test_empty(self):
        with pytest.raises(ValidationError, match="at least one row"):
            build_intervals(self._daily().iloc[:0])


# ═══════════════════════════════════════════════════════════════════════
# Running sums and round trip
# ═══════════════════════════════════════════════════════════════════════


class TestCumulative:

    def test_running_sum_within_subject(self, three_subject_daily):
        iv = build_intervals(three_subject_daily, cumulative=("fluids",))
        np.testing.assert_array_equal(
            iv["fluids_cumulative"], [1.0, 1.0, 2.0, 2.0, 1.0, 2.0, 2.0]
        )

    def test_selected_covariates_keep_running_sum(self, three_subject_daily):
        iv = build_intervals(
            three_subject_daily, covariates=("severity",), cumulative=("fluids",),
        )
        assert iv.covariate_names == ("severity", "fluids_cumulative")

    def test_unknown_column(self, three_subject_daily):
        with pytest.raises(ValidationError, match="lactate"):
            build_intervals(three_subject_daily, cumulative=("lactate",))


class TestRoundTrip:

    def test_to_daily_rebuilds_same_intervals(self, three_subject_daily):
        iv = build_intervals(three_subject_daily, imputation=CarryForward())
        rebuilt = build_intervals(iv.to_daily())
        pd.testing.assert_frame_equal(rebuilt.to_frame(), iv.to_frame())

    def test_simulated_cohort(self, intervals):
        rebuilt = build_intervals(intervals.to_daily())
        pd.testing.assert_frame_equal(rebuilt.to_frame(), intervals.to_frame())
        assert intervals.n_events(DEATH) > 0
        assert intervals.n_events(DISCHARGE) > 0
