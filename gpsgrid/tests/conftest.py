"""
Shared fixtures for the gridder tests.
"""

import numpy as np
import pytest

from gpsgrid.gridder.core.gridder_config import GridderConfig
from gpsgrid.gridder.data.observations import ObservationSet


@pytest.fixture
def make_config():
    """factory of configurations that only report critical messages"""
    def _make(**custom):
        return GridderConfig(custom_config=custom, silent=True)
    return _make


@pytest.fixture
def scattered_records():
    """ten constraints with a smooth field plus some signal, x y u v"""
    rng = np.random.default_rng(42)
    x = rng.uniform(0.0, 100.0, 10)
    y = rng.uniform(0.0, 50.0, 10)
    u = 0.05 * x - 0.02 * y + np.sin(x / 20.0)
    v = -0.01 * x + 0.03 * y + np.cos(y / 15.0)
    return np.column_stack([x, y, u, v])


@pytest.fixture
def square_records():
    """constraints on the corners of the unit square"""
    return np.array([[0.0, 0.0, 1.0, 2.0],
                     [1.0, 0.0, 3.0, -1.0],
                     [0.0, 1.0, -2.0, 0.5],
                     [1.0, 1.0, 0.0, 4.0]])


@pytest.fixture
def scattered_observations(scattered_records):
    return ObservationSet.from_records(scattered_records)
