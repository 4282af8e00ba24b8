"""
Gamification engines for habitcore

- Multi-category streak tracking
- Achievement catalog, unlocking and levels
- Habit tracking with nudges and insights
"""

from habitcore.gamification.streak_engine import StreakEngine, STREAK_MILESTONES
from habitcore.gamification.achievement_engine import AchievementEngine
from habitcore.gamification.achievement_catalog import ACHIEVEMENTS, load_catalog
from habitcore.gamification.level_system import calculate_level
from habitcore.gamification.nudge_engine import HabitNudgeEngine, classify_nudge, generate_insights

__all__ = [
    "StreakEngine",
    "STREAK_MILESTONES",
    "AchievementEngine",
    "ACHIEVEMENTS",
    "load_catalog",
    "calculate_level",
    "HabitNudgeEngine",
    "classify_nudge",
    "generate_insights",
]
