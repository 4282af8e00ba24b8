"""Unit tests for engine state persistence (habitcore/store/persistence.py)"""
import asyncio
import pytest
from unittest.mock import AsyncMock

from habitcore.exceptions import StorageError
from habitcore.gamification.achievement_engine import AchievementEngine
from habitcore.gamification.nudge_engine import HabitNudgeEngine
from habitcore.gamification.streak_engine import StreakEngine
from habitcore.store.memory_store import InMemoryStore
from habitcore.store.persistence import EngineStatePersister, storage_key


def _engines(clock, rng):
    return {
        "streaks": StreakEngine(clock=clock),
        "achievements": AchievementEngine(clock=clock),
        "habits": HabitNudgeEngine(clock=clock, rng=rng),
    }


def _failing_store(error=None):
    store = AsyncMock()
    store.get = AsyncMock(side_effect=error or StorageError("store offline"))
    store.set = AsyncMock(side_effect=error or StorageError("store offline"))
    store.delete = AsyncMock(side_effect=error or StorageError("store offline"))
    return store


def test_storage_key_namespacing():
    assert storage_key("local-user", "streaks") == "habitcore:local-user:streaks"
    assert storage_key("u1", "habits", prefix="test") == "test:u1:habits"


# ============================================================================
# Save / Load Round Trip
# ============================================================================

@pytest.mark.asyncio
async def test_save_then_load_restores_state(clock, rng, memory_store, test_user_id):
    """State written by one persister is rehydrated by another"""
    engines = _engines(clock, rng)
    engines["streaks"].update_streak("workout")
    engines["achievements"].update_progress("workouts", 1)
    engines["habits"].track_habit("workout")

    persister = EngineStatePersister(memory_store, test_user_id, engines)
    assert await persister.save() is True
    assert sorted(memory_store.keys()) == [
        "habitcore:local-user:achievements",
        "habitcore:local-user:habits",
        "habitcore:local-user:streaks",
    ]

    restored = _engines(clock, rng)
    loaded = await EngineStatePersister(memory_store, test_user_id, restored).load()

    assert loaded == {"streaks": True, "achievements": True, "habits": True}
    assert restored["streaks"].get_current_streak("workout") == 1
    assert restored["achievements"].total_points == 10
    assert restored["habits"].get_habit("workout").total_completions == 1


@pytest.mark.asyncio
async def test_load_with_no_data_is_first_run(clock, rng, memory_store, test_user_id):
    engines = _engines(clock, rng)
    loaded = await EngineStatePersister(memory_store, test_user_id, engines).load()

    assert loaded == {"streaks": False, "achievements": False, "habits": False}
    assert engines["achievements"].total_points == 0


@pytest.mark.asyncio
async def test_load_failure_never_raises(clock, rng, test_user_id):
    """Store errors during load leave engines empty"""
    engines = _engines(clock, rng)
    persister = EngineStatePersister(_failing_store(ConnectionError("down")), test_user_id, engines)

    loaded = await persister.load()

    assert not any(loaded.values())
    assert engines["streaks"].get_streaks() == []


@pytest.mark.asyncio
async def test_load_ignores_malformed_blob(clock, rng, test_user_id):
    store = InMemoryStore({"habitcore:local-user:streaks": ["not", "a", "dict"]})
    engines = _engines(clock, rng)

    loaded = await EngineStatePersister(store, test_user_id, engines).load()

    assert loaded["streaks"] is False


# ============================================================================
# Save Failures
# ============================================================================

@pytest.mark.asyncio
async def test_save_failure_retries_once_and_never_raises(clock, rng, test_user_id):
    store = _failing_store()
    engines = _engines(clock, rng)
    engines["streaks"].update_streak("workout")
    persister = EngineStatePersister(store, test_user_id, engines, retries=1)

    assert await persister.save() is False

    # Three blobs, each tried twice
    assert store.set.await_count == 6
    assert engines["streaks"].get_current_streak("workout") == 1


@pytest.mark.asyncio
async def test_save_recovers_on_retry(clock, rng, test_user_id):
    """A transient failure followed by success counts as saved"""
    store = InMemoryStore()
    store.set = AsyncMock(side_effect=[StorageError("blip"), None, None, None])
    engines = _engines(clock, rng)
    persister = EngineStatePersister(store, test_user_id, engines, retries=1)

    assert await persister.save() is True
    assert store.set.await_count == 4


@pytest.mark.asyncio
async def test_save_does_not_retry_programming_errors(clock, rng, test_user_id):
    store = _failing_store(TypeError("not serializable"))
    persister = EngineStatePersister(store, test_user_id, _engines(clock, rng), retries=1)

    assert await persister.save() is False
    assert store.set.await_count == 3


# ============================================================================
# Scheduling
# ============================================================================

def test_schedule_save_without_loop_marks_dirty(clock, rng, memory_store, test_user_id):
    persister = EngineStatePersister(memory_store, test_user_id, _engines(clock, rng))
    persister.schedule_save()

    assert persister.dirty is True


@pytest.mark.asyncio
async def test_flush_writes_dirty_state(clock, rng, memory_store, test_user_id):
    engines = _engines(clock, rng)
    persister = EngineStatePersister(memory_store, test_user_id, engines)
    persister._dirty = True

    assert await persister.flush() is True
    assert persister.dirty is False
    assert await memory_store.get("habitcore:local-user:streaks") == {"streaks": {}}


@pytest.mark.asyncio
async def test_scheduled_saves_coalesce(clock, rng, memory_store, test_user_id):
    """Mutations inside a running loop are written by a background task"""
    engines = _engines(clock, rng)
    persister = EngineStatePersister(memory_store, test_user_id, engines)
    for engine in engines.values():
        engine.on_change = persister.schedule_save

    engines["streaks"].update_streak("workout")
    clock.advance(days=1)
    engines["streaks"].update_streak("workout")
    await persister.flush()

    stored = await memory_store.get("habitcore:local-user:streaks")
    assert stored["streaks"]["workout"]["current_count"] == 2


@pytest.mark.asyncio
async def test_background_save_failure_is_contained(clock, rng, test_user_id):
    """A failing store never surfaces through engine calls or flush"""
    engines = _engines(clock, rng)
    persister = EngineStatePersister(_failing_store(), test_user_id, engines, retries=0)
    engines["achievements"].on_change = persister.schedule_save

    engines["achievements"].unlock_achievement("FIRST_WORKOUT")
    await asyncio.sleep(0)

    assert await persister.flush() is False
    assert persister.dirty is True
    assert engines["achievements"].total_points == 10


@pytest.mark.asyncio
async def test_flush_after_finished_failed_save_reports_failure(clock, rng, test_user_id):
    """A background write that already failed is retried, not reported as saved"""
    store = _failing_store()
    engines = _engines(clock, rng)
    persister = EngineStatePersister(store, test_user_id, engines, retries=0)
    engines["streaks"].on_change = persister.schedule_save

    engines["streaks"].update_streak("workout")
    await persister._task
    assert store.set.await_count == 3

    assert await persister.flush() is False
    assert store.set.await_count == 6


@pytest.mark.asyncio
async def test_flush_writes_state_once_store_recovers(clock, rng, test_user_id):
    store = InMemoryStore()
    real_set = store.set
    store.set = AsyncMock(side_effect=StorageError("offline"))
    engines = _engines(clock, rng)
    persister = EngineStatePersister(store, test_user_id, engines, retries=0)
    engines["streaks"].on_change = persister.schedule_save

    engines["streaks"].update_streak("workout")
    assert await persister.flush() is False

    store.set = real_set
    assert await persister.flush() is True
    assert persister.dirty is False
    stored = await store.get("habitcore:local-user:streaks")
    assert stored["streaks"]["workout"]["current_count"] == 1


# ============================================================================
# Clear
# ============================================================================

@pytest.mark.asyncio
async def test_clear_removes_blobs(clock, rng, memory_store, test_user_id):
    persister = EngineStatePersister(memory_store, test_user_id, _engines(clock, rng))
    await persister.save()

    await persister.clear()

    assert memory_store.keys() == []


@pytest.mark.asyncio
async def test_clear_failure_is_logged_not_raised(clock, rng, test_user_id):
    store = _failing_store()
    persister = EngineStatePersister(store, test_user_id, _engines(clock, rng))

    await persister.clear()

    assert store.delete.await_count == 3
