"""
Multi-Category Streak Tracking

Tracks consecutive-day completion per activity category:
- workout
- nutrition
- wellness
- any other category the app logs (auto-initialized on first write)

Rules:
- Completion on the day after the last completion continues the streak
- Completion after a gap of 2+ days (or out of order) restarts at 1
- Repeat completion on the same day is a no-op
- Reporting "not completed" on the day after the last completion lapses
  the streak to 0
- Reaching 3, 7 or 30 on increment emits a StreakMilestone
"""

from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional
import logging

from habitcore.models.streak import StreakMilestone, StreakState
from habitcore.observability.metrics import record_streak_milestone
from habitcore.utils.datetime_helpers import Clock, DateLike, SystemClock, date_key, to_date
from habitcore.validators import normalize_category

logger = logging.getLogger(__name__)

# Streak length -> achievement unlocked by reaching it
STREAK_MILESTONES: Dict[int, str] = {
    3: "THREE_DAY_STREAK",
    7: "WEEK_WARRIOR",
    30: "MONTH_MASTER",
}

MilestoneListener = Callable[[StreakMilestone], None]


class StreakEngine:
    """Current and longest streak per activity category"""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.clock = clock or SystemClock()
        self.on_change = on_change
        self._streaks: Dict[str, StreakState] = {}
        self._milestone_listeners: List[MilestoneListener] = []

    def add_milestone_listener(self, listener: MilestoneListener) -> None:
        """Register a callback for streak milestones"""
        self._milestone_listeners.append(listener)

    def update_streak(
        self,
        category: str,
        completed_today: bool = True,
        reference_date: Optional[DateLike] = None,
    ) -> int:
        """
        Update streak for a category at the end of (or during) a day

        Args:
            category: Activity category (workout, nutrition, wellness, ...)
            completed_today: Whether the activity was completed on reference_date
            reference_date: Day being reported (defaults to the clock's today)

        Returns:
            Resulting current streak count (0 for a malformed category,
            unchanged for an unreadable reference_date)
        """
        category = normalize_category(category)
        if category is None:
            return 0

        try:
            reference = to_date(reference_date if reference_date is not None else self.clock.now())
        except (TypeError, ValueError):
            logger.warning(f"Ignoring streak update for {category} with unreadable date: {reference_date!r}")
            return self.get_current_streak(category)
        today_key = date_key(reference)
        yesterday_key = date_key(reference - timedelta(days=1))

        streak = self._streaks.setdefault(category, StreakState())
        before = streak.model_copy()
        old_count = streak.current_count
        milestone_count = None

        if completed_today:
            if streak.last_completed is None or streak.last_completed == yesterday_key:
                streak.current_count += 1
                streak.last_completed = today_key
                streak.longest_count = max(streak.longest_count, streak.current_count)
                if streak.current_count in STREAK_MILESTONES:
                    milestone_count = streak.current_count

            elif streak.last_completed != today_key:
                # Gap of 2+ days, or an out-of-order date
                logger.info(
                    f"Streak broken for {category}. "
                    f"Was {old_count}, last completed {streak.last_completed}, now {today_key}"
                )
                streak.current_count = 1
                streak.last_completed = today_key
                streak.longest_count = max(streak.longest_count, 1)

            # Same day: already counted

        elif streak.last_completed == yesterday_key:
            logger.info(f"Streak lapsed for {category} after {old_count} days")
            streak.current_count = 0
            streak.last_completed = None

        if streak != before:
            logger.debug(f"Updated {category} streak: {old_count} → {streak.current_count} days")
            self._notify_change()

        if milestone_count is not None:
            self._emit_milestone(category, milestone_count)

        return streak.current_count

    def get_current_streak(self, category: str) -> int:
        """Current streak for a category, 0 if unknown"""
        streak = self._lookup(category)
        return streak.current_count if streak else 0

    def get_longest_streak(self, category: str) -> int:
        """Longest streak for a category, 0 if unknown"""
        streak = self._lookup(category)
        return streak.longest_count if streak else 0

    def get_streak_state(self, category: str) -> Optional[StreakState]:
        """Copy of the stored state for a category"""
        streak = self._lookup(category)
        return streak.model_copy() if streak else None

    def get_streaks(self) -> List[Dict[str, Any]]:
        """
        All tracked streaks, longest current streak first

        Returns:
            [{'category': str, 'current_streak': int, 'longest_streak': int, 'last_completed': str}]
        """
        formatted = [
            {
                "category": category,
                "current_streak": state.current_count,
                "longest_streak": state.longest_count,
                "last_completed": state.last_completed,
            }
            for category, state in self._streaks.items()
        ]
        formatted.sort(key=lambda x: x["current_streak"], reverse=True)
        return formatted

    def reset(self) -> None:
        """Clear all streak state (explicit data reset)"""
        self._streaks.clear()
        self._notify_change()

    # ========================================
    # Persistence
    # ========================================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize state to a JSON-compatible dict"""
        return {
            "streaks": {
                category: state.model_dump(mode="json")
                for category, state in self._streaks.items()
            }
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Replace state with a previously serialized dict; bad entries are skipped"""
        streaks: Dict[str, StreakState] = {}
        for category, raw in (data or {}).get("streaks", {}).items():
            try:
                streaks[category] = StreakState(**raw)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable streak state for {category}: {e}")
        self._streaks = streaks
        logger.info(f"Loaded {len(streaks)} streak categories")

    # ========================================
    # Internals
    # ========================================

    def _lookup(self, category: str) -> Optional[StreakState]:
        category = normalize_category(category)
        return self._streaks.get(category) if category else None

    def _emit_milestone(self, category: str, count: int) -> None:
        milestone = StreakMilestone(
            category=category,
            count=count,
            achievement_id=STREAK_MILESTONES[count],
            reached_at=self.clock.now(),
        )
        logger.info(f"🏆 {count}-day {category} streak milestone reached")
        record_streak_milestone(category)

        for listener in self._milestone_listeners:
            try:
                listener(milestone)
            except Exception as e:
                logger.error(f"Streak milestone listener failed: {e}", exc_info=True)

    def _notify_change(self) -> None:
        if self.on_change:
            self.on_change()
