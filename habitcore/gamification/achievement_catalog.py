"""
Achievement Catalog

Static achievement definitions across six categories:
- Workout (total sessions)
- Consistency (daily streaks)
- Nutrition (meal logging, protein targets)
- Wellness (check-ins, stress sessions)
- Milestone (long-term goals)
- Social (sharing, encouragement)

Requirements are conjunctive: every listed metric must reach its threshold.
Points grow with tier inside each category. The catalog is validated once
when loaded and is read-only afterwards.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from pydantic import ValidationError

from habitcore.exceptions import CatalogError
from habitcore.models.achievement import AchievementDefinition
from habitcore.validators import snake_case

logger = logging.getLogger(__name__)


RAW_ACHIEVEMENTS: List[Dict[str, Any]] = [
    # Workout
    {
        "id": "FIRST_WORKOUT",
        "category": "workout",
        "tier": "bronze",
        "title": "Getting Started",
        "description": "Complete your first workout",
        "icon": "fitness",
        "points": 10,
        "requirement": {"workouts": 1},
        "message": "Every journey begins with a single rep. You've taken the first step.",
    },
    {
        "id": "WORKOUT_WARRIOR",
        "category": "workout",
        "tier": "silver",
        "title": "Workout Warrior",
        "description": "Complete 10 workouts",
        "icon": "barbell",
        "points": 50,
        "requirement": {"workouts": 10},
        "prerequisites": ["FIRST_WORKOUT"],
        "message": "Consistency beats perfection. You're building real strength.",
    },
    {
        "id": "IRON_DEDICATION",
        "category": "workout",
        "tier": "gold",
        "title": "Iron Dedication",
        "description": "Complete 50 workouts",
        "icon": "medal",
        "points": 200,
        "requirement": {"workouts": 50},
        "prerequisites": ["WORKOUT_WARRIOR"],
        "message": "Iron sharpens iron. Your dedication is forging an unstoppable you.",
    },
    # Consistency
    {
        "id": "THREE_DAY_STREAK",
        "category": "consistency",
        "tier": "bronze",
        "title": "Building Momentum",
        "description": "Log activity for 3 consecutive days",
        "icon": "flame",
        "points": 25,
        "requirement": {"streak": 3},
        "message": "Momentum is building. Keep the fire burning.",
    },
    {
        "id": "WEEK_WARRIOR",
        "category": "consistency",
        "tier": "silver",
        "title": "Week Warrior",
        "description": "Log activity for 7 consecutive days",
        "icon": "trending-up",
        "points": 75,
        "requirement": {"streak": 7},
        "message": "A week of wins. You're proving what consistency can achieve.",
    },
    {
        "id": "MONTH_MASTER",
        "category": "consistency",
        "tier": "gold",
        "title": "Month Master",
        "description": "Log activity for 30 consecutive days",
        "icon": "trophy",
        "points": 300,
        "requirement": {"streak": 30},
        "prerequisites": ["WEEK_WARRIOR"],
        "message": "Thirty days of discipline. You've mastered the art of showing up.",
    },
    {
        "id": "UNSTOPPABLE",
        "category": "consistency",
        "tier": "legendary",
        "title": "Unstoppable",
        "description": "Log activity for 100 consecutive days",
        "icon": "infinite",
        "points": 1000,
        "requirement": {"streak": 100},
        "prerequisites": ["MONTH_MASTER"],
        "message": "A hundred days straight. Showing up is simply who you are now.",
    },
    # Nutrition
    {
        "id": "MACRO_TRACKER",
        "category": "nutrition",
        "tier": "bronze",
        "title": "Macro Tracker",
        "description": "Log meals for 7 days",
        "icon": "restaurant",
        "points": 30,
        "requirement": {"meal_days": 7},
        "message": "Knowledge is power. You're taking control of your nutrition.",
    },
    {
        "id": "PROTEIN_KING",
        "category": "nutrition",
        "tier": "silver",
        "title": "Protein King",
        "description": "Hit protein target for 14 days",
        "icon": "nutrition",
        "points": 100,
        "requirement": {"protein_target_days": 14},
        "message": "Building blocks of strength. Your muscles are getting the fuel they need.",
    },
    # Wellness
    {
        "id": "MIND_WARRIOR",
        "category": "wellness",
        "tier": "bronze",
        "title": "Mind Warrior",
        "description": "Complete 5 wellness check-ins",
        "icon": "heart",
        "points": 20,
        "requirement": {"wellness_checkins": 5},
        "message": "Mental strength is real strength. You're investing in your mind.",
    },
    {
        "id": "STRESS_SLAYER",
        "category": "wellness",
        "tier": "silver",
        "title": "Stress Slayer",
        "description": "Complete 10 stress management sessions",
        "icon": "shield",
        "points": 80,
        "requirement": {"stress_sessions": 10},
        "message": "Pressure makes diamonds. You're turning stress into strength.",
    },
    # Milestone
    {
        "id": "WEIGHT_GOAL_CRUSHER",
        "category": "milestone",
        "tier": "gold",
        "title": "Goal Crusher",
        "description": "Reach your weight goal",
        "icon": "checkmark-circle",
        "points": 500,
        "requirement": {"weight_goal_reached": 1},
        "message": "Goals aren't dreams when you have a plan. You just proved it.",
    },
    {
        "id": "CENTURY_CLUB",
        "category": "milestone",
        "tier": "platinum",
        "title": "Century Club",
        "description": "Complete 100 workouts while holding a 14-day streak",
        "icon": "ribbon",
        "points": 750,
        "requirement": {"workouts": 100, "streak": 14},
        "prerequisites": ["IRON_DEDICATION"],
        "message": "A hundred sessions and still going. That's a lifestyle, not a phase.",
    },
    # Social
    {
        "id": "COMMUNITY_CONTRIBUTOR",
        "category": "social",
        "tier": "bronze",
        "title": "Community Contributor",
        "description": "Share your first progress update",
        "icon": "people",
        "points": 15,
        "requirement": {"progress_shares": 1},
        "message": "Lifting each other up is how communities grow. Thanks for sharing.",
    },
    {
        "id": "MOTIVATOR",
        "category": "social",
        "tier": "silver",
        "title": "Motivator",
        "description": "Give encouragement to 10 community members",
        "icon": "thumbs-up",
        "points": 60,
        "requirement": {"encouragements_given": 10},
        "message": "Leaders create leaders. Your words are making a difference.",
    },
]

# Snapshot stat names that differ from the metric they feed
STAT_ALIASES: Dict[str, str] = {
    "total_workouts": "workouts",
    "current_streak": "streak",
}

UNLOCKED_STAT_KEY = "unlocked_achievements"


def load_catalog(raw: Iterable[Mapping[str, Any]] = RAW_ACHIEVEMENTS) -> Tuple[AchievementDefinition, ...]:
    """
    Validate raw definitions into an immutable catalog

    Checks:
    - every entry parses as an AchievementDefinition
    - ids are unique
    - prerequisites reference known ids and contain no cycles

    Raises:
        CatalogError on the first invalid entry
    """
    definitions: List[AchievementDefinition] = []
    seen = set()

    for entry in raw:
        try:
            definition = AchievementDefinition(**entry)
        except ValidationError as e:
            raise CatalogError(
                f"Invalid achievement definition: {e.error_count()} error(s)",
                achievement_id=entry.get("id"),
                cause=e,
            )
        if definition.id in seen:
            raise CatalogError(f"Duplicate achievement id '{definition.id}'", achievement_id=definition.id)
        seen.add(definition.id)
        definitions.append(definition)

    by_id = {d.id: d for d in definitions}
    for definition in definitions:
        for prerequisite in definition.prerequisites:
            if prerequisite not in by_id:
                raise CatalogError(
                    f"Achievement '{definition.id}' requires unknown achievement '{prerequisite}'",
                    achievement_id=definition.id,
                )

    _check_prerequisite_cycles(by_id)

    logger.info(f"Loaded achievement catalog with {len(definitions)} definitions")
    return tuple(definitions)


def _check_prerequisite_cycles(by_id: Mapping[str, AchievementDefinition]) -> None:
    """Depth-first search over prerequisite edges"""
    visiting = set()
    done = set()

    def visit(achievement_id: str) -> None:
        if achievement_id in done:
            return
        if achievement_id in visiting:
            raise CatalogError(
                f"Prerequisite cycle involving '{achievement_id}'",
                achievement_id=achievement_id,
            )
        visiting.add(achievement_id)
        for prerequisite in by_id[achievement_id].prerequisites:
            visit(prerequisite)
        visiting.discard(achievement_id)
        done.add(achievement_id)

    for achievement_id in by_id:
        visit(achievement_id)


def normalize_stats(stats: Mapping[str, Any]) -> Tuple[Dict[str, float], List[str]]:
    """
    Split a caller's stats snapshot into metrics and already-unlocked ids

    Accepts metric names directly, snake_case or camelCase stat names
    (totalWorkouts, current_streak, mealDays), booleans as 0/1, and an
    `unlocked_achievements` list of ids or {"id": ...} dicts. Non-numeric
    and non-finite values are ignored.

    Example:
        normalize_stats({"totalWorkouts": 3, "unlockedAchievements": ["FIRST_WORKOUT"]})
        -> ({"workouts": 3.0}, ["FIRST_WORKOUT"])
    """
    metrics: Dict[str, float] = {}
    unlocked: List[str] = []

    for key, value in (stats or {}).items():
        name = snake_case(key)

        if name == UNLOCKED_STAT_KEY:
            if not isinstance(value, (list, tuple)):
                continue
            for item in value:
                if isinstance(item, Mapping):
                    item = item.get("id") or item.get("achievement_id")
                if isinstance(item, str) and item:
                    unlocked.append(item)
            continue

        if isinstance(value, bool):
            value = 1.0 if value else 0.0
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            continue

        metrics[STAT_ALIASES.get(name, name)] = float(value)

    return metrics, unlocked


# Default catalog, validated at import
ACHIEVEMENTS: Tuple[AchievementDefinition, ...] = load_catalog()
ACHIEVEMENTS_BY_ID: Dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENTS}
