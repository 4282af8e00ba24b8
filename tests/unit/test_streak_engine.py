"""Unit tests for Streak Engine (habitcore/gamification/streak_engine.py)"""
import pytest
from datetime import date
from unittest.mock import Mock

from habitcore.gamification.streak_engine import StreakEngine, STREAK_MILESTONES


# ============================================================================
# Increment / Idempotency
# ============================================================================

def test_first_completion_starts_streak(streak_engine):
    """First completion starts the streak at 1"""
    assert streak_engine.update_streak("workout") == 1
    assert streak_engine.get_current_streak("workout") == 1
    assert streak_engine.get_longest_streak("workout") == 1
    assert streak_engine.get_streak_state("workout").last_completed == "2024-03-15"


def test_consecutive_days_increment(streak_engine, clock):
    """Completions on consecutive days extend the streak"""
    for _ in range(4):
        streak_engine.update_streak("workout")
        clock.advance(days=1)

    assert streak_engine.get_current_streak("workout") == 4
    assert streak_engine.get_longest_streak("workout") == 4


def test_same_day_repeat_is_noop(clock):
    """Repeat completion on the same day neither increments nor reports a change"""
    on_change = Mock()
    engine = StreakEngine(clock=clock, on_change=on_change)

    assert engine.update_streak("workout") == 1
    clock.advance(hours=5)
    assert engine.update_streak("workout") == 1

    assert on_change.call_count == 1


def test_reference_date_overrides_clock(streak_engine):
    """An explicit reference date is used instead of the clock"""
    streak_engine.update_streak("nutrition", reference_date=date(2024, 1, 1))
    streak_engine.update_streak("nutrition", reference_date="2024-01-02")

    state = streak_engine.get_streak_state("nutrition")
    assert state.current_count == 2
    assert state.last_completed == "2024-01-02"


# ============================================================================
# Breaks and Lapses
# ============================================================================

def test_streak_breaks_after_missed_day(streak_engine, clock):
    """Days 1-3 completed, day 4 missed, day 5 completed -> streak restarts at 1"""
    for _ in range(3):
        streak_engine.update_streak("workout")
        clock.advance(days=1)
    assert streak_engine.get_current_streak("workout") == 3

    clock.advance(days=1)  # day 4 passes with nothing logged
    assert streak_engine.update_streak("workout") == 1
    assert streak_engine.get_longest_streak("workout") == 3


def test_not_completed_day_after_lapses_streak(streak_engine, clock):
    """Reporting no completion the day after the last one resets to 0"""
    streak_engine.update_streak("wellness")
    clock.advance(days=1)
    streak_engine.update_streak("wellness")
    clock.advance(days=1)

    assert streak_engine.update_streak("wellness", completed_today=False) == 0

    state = streak_engine.get_streak_state("wellness")
    assert state.current_count == 0
    assert state.last_completed is None
    assert state.longest_count == 2

    clock.advance(days=1)
    assert streak_engine.update_streak("wellness") == 1


def test_not_completed_without_recent_completion_changes_nothing(streak_engine, clock):
    """A 'not completed' report with an older last completion is a no-op"""
    streak_engine.update_streak("workout")
    clock.advance(days=5)

    assert streak_engine.update_streak("workout", completed_today=False) == 1
    assert streak_engine.get_streak_state("workout").last_completed == "2024-03-15"


def test_out_of_order_date_restarts_streak(streak_engine):
    """A completion dated before the last one restarts at 1"""
    streak_engine.update_streak("workout", reference_date="2024-03-15")
    streak_engine.update_streak("workout", reference_date="2024-03-16")

    assert streak_engine.update_streak("workout", reference_date="2024-03-10") == 1
    assert streak_engine.get_streak_state("workout").last_completed == "2024-03-10"
    assert streak_engine.get_longest_streak("workout") == 2


# ============================================================================
# Unknown / Malformed Categories
# ============================================================================

def test_unknown_category_reads_zero(streak_engine):
    """Reads for untracked categories default to 0"""
    assert streak_engine.get_current_streak("meditation") == 0
    assert streak_engine.get_longest_streak("meditation") == 0
    assert streak_engine.get_streak_state("meditation") is None


def test_unknown_category_auto_initializes(streak_engine):
    """Writing an unseen category creates a zero state"""
    assert streak_engine.update_streak("meditation", completed_today=False) == 0
    assert [s["category"] for s in streak_engine.get_streaks()] == ["meditation"]


def test_malformed_category_returns_zero(streak_engine):
    """Malformed categories are rejected without raising"""
    assert streak_engine.update_streak("") == 0
    assert streak_engine.update_streak("not a category!") == 0
    assert streak_engine.update_streak(None) == 0
    assert streak_engine.get_streaks() == []


def test_unreadable_reference_date_leaves_streak_unchanged(streak_engine):
    streak_engine.update_streak("workout")

    assert streak_engine.update_streak("workout", True, "not-a-date") == 1
    assert streak_engine.update_streak("nutrition", True, object()) == 0
    assert streak_engine.get_streak_state("workout").last_completed == "2024-03-15"
    assert streak_engine.get_streak_state("nutrition") is None


def test_category_is_normalized(streak_engine):
    """Whitespace and case are normalized"""
    streak_engine.update_streak("  Workout ")
    assert streak_engine.get_current_streak("workout") == 1


# ============================================================================
# Milestones
# ============================================================================

def test_milestones_emitted_on_increment(streak_engine, clock):
    """Reaching 3 and 7 on increment emits milestones with their achievement ids"""
    listener = Mock()
    streak_engine.add_milestone_listener(listener)

    for _ in range(7):
        streak_engine.update_streak("workout")
        clock.advance(days=1)

    milestones = [call.args[0] for call in listener.call_args_list]
    assert [m.count for m in milestones] == [3, 7]
    assert [m.achievement_id for m in milestones] == ["THREE_DAY_STREAK", "WEEK_WARRIOR"]
    assert all(m.category == "workout" for m in milestones)


def test_milestone_not_repeated_on_same_day(streak_engine, clock):
    """A same-day repeat at a milestone count does not emit again"""
    listener = Mock()
    streak_engine.add_milestone_listener(listener)

    for _ in range(3):
        streak_engine.update_streak("workout")
        clock.advance(days=1)
    clock.advance(days=-1)
    streak_engine.update_streak("workout")

    assert listener.call_count == 1


def test_failing_milestone_listener_does_not_propagate(streak_engine, clock):
    """Listener errors are logged, the update still succeeds"""
    streak_engine.add_milestone_listener(Mock(side_effect=RuntimeError("boom")))

    for _ in range(3):
        result = streak_engine.update_streak("workout")
        clock.advance(days=1)

    assert result == 3


def test_milestone_table():
    """Milestones map to consistency achievements"""
    assert STREAK_MILESTONES == {3: "THREE_DAY_STREAK", 7: "WEEK_WARRIOR", 30: "MONTH_MASTER"}


# ============================================================================
# Listing / Persistence
# ============================================================================

def test_get_streaks_sorted_by_current(streak_engine, clock):
    """Streak list is ordered by current streak, longest first"""
    streak_engine.update_streak("nutrition")
    streak_engine.update_streak("workout")
    clock.advance(days=1)
    streak_engine.update_streak("workout")

    streaks = streak_engine.get_streaks()
    assert [s["category"] for s in streaks] == ["workout", "nutrition"]
    assert streaks[0]["current_streak"] == 2


def test_round_trip_through_dict(streak_engine, clock):
    """to_dict/load_dict reproduces equivalent state"""
    for _ in range(2):
        streak_engine.update_streak("workout")
        clock.advance(days=1)

    restored = StreakEngine(clock=clock)
    restored.load_dict(streak_engine.to_dict())

    assert restored.get_streak_state("workout") == streak_engine.get_streak_state("workout")
    assert restored.update_streak("workout") == 3


def test_load_dict_skips_bad_entries(streak_engine):
    """Unreadable entries are dropped, readable ones kept"""
    streak_engine.load_dict({
        "streaks": {
            "workout": {"current_count": 4, "last_completed": "2024-03-14", "longest_count": 6},
            "nutrition": {"current_count": -3},
        }
    })

    assert streak_engine.get_current_streak("workout") == 4
    assert streak_engine.get_streak_state("nutrition") is None


def test_reset_clears_state(streak_engine):
    """reset() removes every category"""
    streak_engine.update_streak("workout")
    streak_engine.reset()
    assert streak_engine.get_streaks() == []
