"""
Shared test fixtures for pytest
"""

import os
import tempfile

# Keep test runs out of the user's home directory (FILES config is read lazily)
_TEST_ROOT = tempfile.mkdtemp(prefix="coinflip-tests-")
os.environ.setdefault("COINFLIP_DATA_DIR", os.path.join(_TEST_ROOT, "data"))
os.environ.setdefault("COINFLIP_LOG_DIR", os.path.join(_TEST_ROOT, "logs"))

import pytest

from core import GameStatsEngine
from models import CoinSide
from services import setup_logging
from services.persistence import GameDataRepository, InMemoryStore

HEADS_DRAW = 0.1
TAILS_DRAW = 0.9


class FixedRandom:
    """Random source that replays queued draws (cycles when exhausted)"""

    def __init__(self, *values: float):
        self.values = list(values) or [HEADS_DRAW]
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def draws_for(*sides: CoinSide) -> FixedRandom:
    """FixedRandom that lands on the given sides in order"""
    return FixedRandom(*(HEADS_DRAW if side is CoinSide.HEADS else TAILS_DRAW for side in sides))


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for all tests"""
    setup_logging({"console_output": False})


@pytest.fixture
def memory_store():
    """Empty in-memory key-value store"""
    return InMemoryStore()


@pytest.fixture
def repository(memory_store):
    """Repository over the in-memory store"""
    return GameDataRepository(memory_store)


@pytest.fixture
def engine(repository):
    """Fresh engine with persistence to memory"""
    return GameStatsEngine(repository)


@pytest.fixture
def play():
    """Helper: predict, then flip with a fixed outcome"""

    def _play(engine, prediction, result):
        engine.set_prediction(prediction)
        return engine.resolve(draws_for(CoinSide.parse(result)))

    return _play


@pytest.fixture
def draws():
    """Factory: random source landing on the given sides in order"""
    return draws_for


@pytest.fixture
def fixed_random():
    """Factory: random source replaying raw draw values"""
    return FixedRandom
