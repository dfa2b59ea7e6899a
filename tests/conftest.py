import numpy as np
import pytest

from config import DEFAULT_PERIODS
from data_objects import PeriodInput


@pytest.fixture
def canonical_periods():
    """Three-period example: big Year-2 top-up plus an extra contribution."""
    return [PeriodInput.from_mapping(row) for row in DEFAULT_PERIODS]


@pytest.fixture
def make_random_periods():
    """Factory for reproducible, in-range period inputs."""

    def _make(seed: int, n: int = 6):
        rng = np.random.default_rng(seed)
        return [
            PeriodInput(
                new_investment=float(rng.uniform(0, 10000)),
                period_return=float(rng.uniform(-0.9, 2.0)),
                dividend_reinvested=float(rng.uniform(0, 50)),
                dividend_paid_out=float(rng.uniform(0, 50)),
                withdrawal=float(rng.uniform(-500, 500)),
            )
            for _ in range(n)
        ]

    return _make
