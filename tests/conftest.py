"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pandas as pd
import pytest

from pycausalsurv.cohort import build_intervals


def simulate_daily(rng, n_subjects=120, max_days=10):
    """Daily ICU-style records with severity confounding fluids and death.

    Severity drifts from day to day, drives the daily fluid volume and the
    daily death probability. Discharge competes with death.
    """
    rows = []
    for pt in range(1, n_subjects + 1):
        severity = rng.normal(5.0, 1.5)
        for day in range(1, max_days + 1):
            fluids = 400.0 + 120.0 * severity + rng.normal(0.0, 250.0)
            p_death = 1.0 / (1.0 + np.exp(-(-5.0 + 0.45 * severity)))
            u = rng.random()
            death = 1.0 if u < p_death else 0.0
            discharge = 1.0 if death == 0.0 and u < p_death + 0.12 else 0.0
            rows.append({
                "pt": pt, "day": day, "fluids": fluids, "severity": severity,
                "death": death, "discharge": discharge,
            })
            if death or discharge:
                break
            severity = severity + rng.normal(0.0, 0.4)
    return pd.DataFrame(rows)


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def three_subject_daily():
    """A dies on day 2, B is discharged on day 2, C dies on day 3."""
    nan = np.nan
    return pd.DataFrame({
        "pt": ["A", "A", "B", "B", "C", "C", "C"],
        "day": [1, 2, 1, 2, 1, 2, 3],
        "fluids": [1.0, nan, 2.0, nan, 1.0, 1.0, nan],
        "severity": [5.0, nan, 3.0, nan, 4.0, 4.0, nan],
        "death": [0, 1, 0, 0, 0, 0, 1],
        "discharge": [0, 0, 0, 1, 0, 0, 0],
    })


@pytest.fixture
def daily(rng):
    """Simulated cohort of daily records."""
    return simulate_daily(rng)


@pytest.fixture
def intervals(daily):
    """Intervals with the cumulative fluid balance added."""
    return build_intervals(daily, cumulative=("fluids",))
