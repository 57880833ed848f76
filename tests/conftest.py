"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pymlshop.core.frame import ModelFrame
from pymlshop.survival.design import Surv


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def regression_frame(rng):
    """Numeric response with three informative predictors."""
    n, p = 60, 3
    X = rng.standard_normal((n, p))
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + rng.standard_normal(n) * 0.5
    return ModelFrame.from_arrays(X=X, y=y)


@pytest.fixture
def factor_frame(rng):
    """Binary factor response driven by the first predictor."""
    n = 80
    X = rng.standard_normal((n, 2))
    p = 1.0 / (1.0 + np.exp(-2.0 * X[:, 0]))
    y = np.where(rng.random(n) < p, "yes", "no")
    return ModelFrame.from_arrays(X=X, y=y)


@pytest.fixture
def surv_data(rng):
    """Right-censored Weibull-like times with distinct values."""
    n = 80
    X = rng.standard_normal((n, 2))
    rate = np.exp(0.8 * X[:, 0] - 0.5 * X[:, 1])
    event_time = rng.exponential(1.0 / rate)
    censor_time = rng.exponential(2.0, n)
    time = np.minimum(event_time, censor_time)
    event = (event_time <= censor_time).astype(float)
    return X, Surv(time, event)


@pytest.fixture
def surv_frame(surv_data):
    X, y = surv_data
    return ModelFrame.from_arrays(X=X, y=y)
