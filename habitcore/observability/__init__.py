"""Prometheus metrics for engine activity and store health"""

from habitcore.observability.metrics import (
    record_achievement_unlocked,
    record_streak_milestone,
    record_nudge,
    record_store_operation,
)

__all__ = [
    "record_achievement_unlocked",
    "record_streak_milestone",
    "record_nudge",
    "record_store_operation",
]
