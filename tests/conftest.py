"""Global test fixtures and utilities for habitcore tests"""
import random
import pytest
from datetime import datetime, timezone

from habitcore.gamification.achievement_engine import AchievementEngine
from habitcore.gamification.nudge_engine import HabitNudgeEngine
from habitcore.gamification.streak_engine import StreakEngine
from habitcore.store.memory_store import InMemoryStore
from habitcore.utils.datetime_helpers import FixedClock


# ============================================================================
# Time & Randomness Fixtures
# ============================================================================

@pytest.fixture
def start_time():
    """Friday 2024-03-15, 09:00 UTC"""
    return datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(start_time):
    """Clock frozen at start_time; advance it explicitly in tests"""
    return FixedClock(start_time)


@pytest.fixture
def rng():
    """Seeded random source for deterministic message choice"""
    return random.Random(42)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def memory_store():
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "local-user"


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def streak_engine(clock):
    return StreakEngine(clock=clock)


@pytest.fixture
def achievement_engine(clock):
    return AchievementEngine(clock=clock)


@pytest.fixture
def nudge_engine(clock, rng):
    return HabitNudgeEngine(clock=clock, rng=rng)
