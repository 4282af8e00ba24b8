"""
Prometheus metrics for habitcore.

Metrics by category:
- Achievements: unlocks by tier
- Streaks: milestones reached by category
- Nudges: generated messages by type
- Store: read/write outcomes
"""

import logging
from prometheus_client import Counter

from habitcore.config import ENABLE_METRICS

logger = logging.getLogger(__name__)

# =============================================================================
# Gamification Metrics
# =============================================================================

achievements_unlocked_total = Counter(
    "habitcore_achievements_unlocked_total",
    "Total achievements unlocked",
    ["tier"],
)

streak_milestones_total = Counter(
    "habitcore_streak_milestones_total",
    "Total streak milestones reached",
    ["category"],
)

nudges_generated_total = Counter(
    "habitcore_nudges_generated_total",
    "Total nudges generated",
    ["nudge_type"],
)

# =============================================================================
# Store Metrics
# =============================================================================

store_operations_total = Counter(
    "habitcore_store_operations_total",
    "Store operations by outcome",
    ["operation", "status"],  # operation: load/save/delete, status: success/failure
)


def record_achievement_unlocked(tier: str) -> None:
    """Record an achievement unlock."""
    if not ENABLE_METRICS:
        return
    try:
        achievements_unlocked_total.labels(tier=tier).inc()
        logger.debug(f"[METRICS] Achievement unlocked: {tier}")
    except Exception as e:
        logger.error(f"Failed to record achievement unlock: {e}")


def record_streak_milestone(category: str) -> None:
    """Record a streak milestone."""
    if not ENABLE_METRICS:
        return
    try:
        streak_milestones_total.labels(category=category).inc()
        logger.debug(f"[METRICS] Streak milestone: {category}")
    except Exception as e:
        logger.error(f"Failed to record streak milestone: {e}")


def record_nudge(nudge_type: str) -> None:
    """Record a generated nudge."""
    if not ENABLE_METRICS:
        return
    try:
        nudges_generated_total.labels(nudge_type=nudge_type).inc()
        logger.debug(f"[METRICS] Nudge generated: {nudge_type}")
    except Exception as e:
        logger.error(f"Failed to record nudge: {e}")


def record_store_operation(operation: str, success: bool) -> None:
    """
    Record a store operation outcome.

    Args:
        operation: load, save or delete
        success: Whether the operation succeeded
    """
    if not ENABLE_METRICS:
        return
    try:
        status = 'success' if success else 'failure'
        store_operations_total.labels(operation=operation, status=status).inc()
        logger.debug(f"[METRICS] Store {operation}: {status}")
    except Exception as e:
        logger.error(f"Failed to record store operation: {e}")
