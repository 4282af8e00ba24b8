"""Unit tests for Pydantic models"""
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from habitcore.models.achievement import AchievementDefinition, UnlockedAchievement
from habitcore.models.habit import HabitRecord, NudgeType, ReminderTime
from habitcore.models.streak import StreakState


class TestStreakState:
    """Test streak state invariants"""

    def test_defaults(self):
        state = StreakState()
        assert state.current_count == 0
        assert state.last_completed is None
        assert state.longest_count == 0

    def test_no_last_day_means_no_streak(self):
        state = StreakState(current_count=5, last_completed=None, longest_count=5)
        assert state.current_count == 0
        assert state.longest_count == 5

    def test_longest_never_trails_current(self):
        state = StreakState(current_count=4, last_completed="2024-03-15", longest_count=2)
        assert state.longest_count == 4

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            StreakState(current_count=-1)


class TestAchievementModels:
    """Test achievement definitions and records"""

    def test_definition_requirement_validation(self):
        with pytest.raises(ValidationError):
            AchievementDefinition(
                id="BAD", category="workout", tier="bronze", title="Bad",
                description="", points=5, requirement={"workouts": -1},
            )

    def test_definition_prerequisites_become_tuple(self):
        definition = AchievementDefinition(
            id="X", category="social", tier="silver", title="X",
            description="", points=5, requirement={"progress_shares": 2},
            prerequisites=["COMMUNITY_CONTRIBUTOR"],
        )
        assert definition.prerequisites == ("COMMUNITY_CONTRIBUTOR",)
        assert definition.icon == "trophy"

    def test_unlocked_achievement_json_round_trip(self):
        record = UnlockedAchievement(
            achievement_id="FIRST_WORKOUT",
            unlocked_at=datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc),
            points=10,
        )
        assert UnlockedAchievement(**record.model_dump(mode="json")) == record


class TestHabitModels:
    """Test habit models"""

    def test_habit_record_defaults(self):
        record = HabitRecord()
        assert record.completion_dates == []
        assert record.preferences.enabled is True
        assert record.preferences.reminder_time is None

    def test_reminder_time_bounds(self):
        with pytest.raises(ValidationError):
            ReminderTime(hour=24)
        assert ReminderTime(hour=6, minute=30).label == ""

    def test_nudge_type_values(self):
        assert NudgeType("streak_protection") == NudgeType.STREAK_PROTECTION
        assert NudgeType.COMEBACK.value == "comeback"
