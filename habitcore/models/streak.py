"""Streak models"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime


class StreakState(BaseModel):
    """Consecutive-day state for one activity category"""
    current_count: int = Field(default=0, ge=0)
    last_completed: Optional[str] = None  # YYYY-MM-DD
    longest_count: int = Field(default=0, ge=0)

    @model_validator(mode='after')
    def check_counts(self) -> 'StreakState':
        """A streak without a last day is empty, and longest never trails current"""
        if self.last_completed is None:
            self.current_count = 0
        if self.longest_count < self.current_count:
            self.longest_count = self.current_count
        return self


class StreakMilestone(BaseModel):
    """Emitted when a streak reaches a milestone on increment"""
    category: str
    count: int
    achievement_id: str
    reached_at: datetime
