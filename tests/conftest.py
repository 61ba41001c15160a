"""Configure test environment for importing the project package."""
import sys
from pathlib import Path

import numpy as np
import pytest

REPO_ROOT = Path(__file__).resolve().parent.parent
SRC = REPO_ROOT / "src"

if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class ScriptedSource:
    """Uniform source replaying fixed ``(2, n)`` blocks of candidate points."""

    def __init__(self, blocks):
        self.blocks = [np.asarray(block, dtype=np.float64) for block in blocks]
        self.calls = 0

    def uniform(self, shape, *, minval=0.0, maxval=1.0, dtype=None):
        block = self.blocks[min(self.calls, len(self.blocks) - 1)]
        self.calls += 1
        assert tuple(shape) == block.shape
        return block


class ExplodingSource:
    """Uniform source that fails the test if anything samples from it."""

    def uniform(self, shape, *, minval=0.0, maxval=1.0, dtype=None):
        raise AssertionError("uniform source should not have been used")


@pytest.fixture
def scripted_source():
    return ScriptedSource


@pytest.fixture
def exploding_source():
    return ExplodingSource()


@pytest.fixture
def atm_market():
    from euromc.core.engine import MarketParameters

    return MarketParameters(spot=100.0, strike=100.0, rate=0.05, volatility=0.2, maturity=1.0)
