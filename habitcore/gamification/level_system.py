"""
Leveling System

Maps cumulative achievement points to a user level.

Level table (points threshold -> level, title):
-    0 -> 1 Beginner
-  100 -> 2 Committed
-  300 -> 3 Dedicated
-  600 -> 4 Warrior
- 1000 -> 5 Champion
- 1500 -> 6 Legend (max)
"""

from typing import List, NamedTuple

from habitcore.models.achievement import UserLevel


class LevelThreshold(NamedTuple):
    points: int
    level: int
    title: str


LEVELS: List[LevelThreshold] = [
    LevelThreshold(0, 1, "Beginner"),
    LevelThreshold(100, 2, "Committed"),
    LevelThreshold(300, 3, "Dedicated"),
    LevelThreshold(600, 4, "Warrior"),
    LevelThreshold(1000, 5, "Champion"),
    LevelThreshold(1500, 6, "Legend"),
]


def calculate_level(total_points: int) -> UserLevel:
    """
    Calculate level from total points

    The highest threshold not exceeding total_points wins. Negative totals
    are treated as level 1.

    Returns:
        UserLevel with points_to_next = 0 and next_level_title = None at max level
    """
    index = 0
    for i, threshold in enumerate(LEVELS):
        if total_points >= threshold.points:
            index = i

    current = LEVELS[index]
    next_level = LEVELS[index + 1] if index + 1 < len(LEVELS) else None

    return UserLevel(
        level=current.level,
        title=current.title,
        points=total_points,
        points_to_next=next_level.points - total_points if next_level else 0,
        next_level_title=next_level.title if next_level else None,
    )
