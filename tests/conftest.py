"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def quadratic_data():
    """Noise-free y = 3 + x + 2x^2 on x = 0..4."""
    x = np.array([0.0, 1.0, 2.0, 3.0, 4.0])
    y = np.array([3.0, 6.0, 13.0, 24.0, 39.0])
    return x, y, np.array([3.0, 1.0, 2.0])


@pytest.fixture
def noisy_quadratic_data(rng):
    """Quadratic with Gaussian noise, for inference statistics."""
    n = 60
    x = np.linspace(-3.0, 3.0, n)
    beta_true = np.array([1.5, -0.7, 0.4])
    y = beta_true[0] + beta_true[1] * x + beta_true[2] * x**2
    y = y + rng.standard_normal(n) * 0.3
    return x, y, beta_true
