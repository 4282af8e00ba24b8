"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime


class AchievementCategory(str, Enum):
    """Achievement categories"""
    WORKOUT = "workout"
    NUTRITION = "nutrition"
    WELLNESS = "wellness"
    CONSISTENCY = "consistency"
    MILESTONE = "milestone"
    SOCIAL = "social"


class AchievementTier(str, Enum):
    """Achievement tiers, used for display and feedback intensity only"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        """Ordinal rank, bronze=1 ... legendary=5"""
        return list(AchievementTier).index(self) + 1


class AchievementDefinition(BaseModel):
    """Static catalog entry, validated once at load time"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    category: AchievementCategory
    tier: AchievementTier
    title: str
    description: str
    icon: str = "trophy"
    points: int = Field(gt=0)
    requirement: dict[str, float]
    prerequisites: tuple[str, ...] = ()
    message: str = ""

    @field_validator('requirement')
    @classmethod
    def validate_requirement(cls, v: dict[str, float]) -> dict[str, float]:
        """Ensure at least one metric and positive thresholds"""
        if not v:
            raise ValueError("requirement must name at least one metric")
        for metric, threshold in v.items():
            if not metric:
                raise ValueError("requirement metric names must be non-empty")
            if threshold <= 0:
                raise ValueError(f"threshold for '{metric}' must be positive, got {threshold}")
        return v


class UnlockedAchievement(BaseModel):
    """Runtime record of an unlocked achievement"""
    achievement_id: str
    unlocked_at: datetime
    points: int


class AchievementProgress(BaseModel):
    """Progress toward a single achievement"""
    current: float
    target: float
    percentage: int
    completed: bool


class AchievementCheckResult(BaseModel):
    """One entry of a check_achievements() pass"""
    achievement: AchievementDefinition
    newly_unlocked: bool
    unlocked: Optional[UnlockedAchievement] = None


class UserLevel(BaseModel):
    """Level derived from cumulative points"""
    level: int
    title: str
    points: int
    points_to_next: int
    next_level_title: Optional[str] = None
