"""
Shared fixtures for weighting tests.
"""

import numpy as np
import pytest


@pytest.fixture
def confounded(rng):
    """Exposure linearly confounded by one covariate (corr about 0.5)."""
    n = 500
    x = rng.normal(size=n)
    a = 0.6 * x + rng.normal(size=n)
    return {
        "pt": np.arange(n),
        "stop": np.ones(n),
        "exposure": a,
        "x": x,
    }


@pytest.fixture
def two_confounders(rng):
    """Exposure confounded by two correlated covariates."""
    n = 400
    x1 = rng.normal(size=n)
    x2 = 0.5 * x1 + rng.normal(size=n)
    a = 0.5 * x1 - 0.4 * x2 + rng.normal(size=n)
    return {
        "pt": np.repeat(np.arange(n // 4), 4),
        "stop": np.tile(np.arange(1.0, 5.0), n // 4),
        "exposure": a,
        "x1": x1,
        "x2": x2,
    }
