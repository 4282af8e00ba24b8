"""Habit tracking and nudge models"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime


class NudgeType(str, Enum):
    """Behavioral trigger behind a nudge"""
    REMINDER = "reminder"
    ENCOURAGEMENT = "encouragement"
    STREAK_PROTECTION = "streak_protection"
    SOCIAL_PROOF = "social_proof"
    ACHIEVEMENT_UNLOCK = "achievement_unlock"
    COMEBACK = "comeback"


class NudgeUrgency(str, Enum):
    """Nudge urgency levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReminderTime(BaseModel):
    """Time of day for a habit reminder"""
    hour: int = Field(ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    label: str = ""


class HabitPreferences(BaseModel):
    """Per-habit reminder preferences"""
    reminder_time: Optional[ReminderTime] = None
    enabled: bool = True


class HabitRecord(BaseModel):
    """Completion history for one habit category"""
    completion_dates: list[str] = Field(default_factory=list)  # sorted, distinct YYYY-MM-DD
    streak: int = 0
    longest_streak: int = 0
    total_completions: int = 0
    last_completed: Optional[str] = None
    preferences: HabitPreferences = Field(default_factory=HabitPreferences)


class NudgeMessage(BaseModel):
    """Generated motivational message"""
    id: str
    habit_category: str
    nudge_type: NudgeType
    title: str
    body: str
    action_label: str
    urgency: NudgeUrgency
    created_at: datetime
    context: dict[str, Any] = Field(default_factory=dict)


class HabitInsight(BaseModel):
    """Canned advisory derived from habit metrics"""
    type: str  # improvement, achievement, strategy, warning, positive
    title: str
    message: str
    action: str


class HabitInsights(HabitRecord):
    """Habit record plus derived dashboard metrics"""
    completion_rate: int
    consistency: int
    trend: str  # improving, declining, stable
    insights: list[HabitInsight] = Field(default_factory=list)
