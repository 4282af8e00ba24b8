"""
Habit Formation and Nudge Engine

Tracks completion days per habit category and turns the resulting
behaviour into motivational nudges and dashboard insights.

Nudge classification (first match wins):
1. streak >= 7 and last completed yesterday   -> STREAK_PROTECTION (high)
2. streak >= 3 and completed today            -> ENCOURAGEMENT (medium)
3. 3+ days since last completion (or never)   -> COMEBACK (high)
4. recent achievement in context              -> ACHIEVEMENT_UNLOCK (medium)
5. social proof requested in context          -> SOCIAL_PROOF (medium)
6. otherwise                                  -> REMINDER (low), titled by time of day
"""

import logging
import math
import random
from bisect import insort
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from habitcore.config import (
    COMPLETION_RATE_WINDOW_DAYS,
    NUDGE_HISTORY_LIMIT,
    TREND_WINDOW_DAYS,
)
from habitcore.gamification.nudge_templates import (
    ACHIEVEMENT_UNLOCK_BODY,
    ACTION_LABELS,
    DEFAULT_REMINDER_TITLE,
    NUDGE_TITLES,
    SOCIAL_PROOF_BODY,
    STREAK_PROTECTION_BODY,
    TIME_OF_DAY_TITLES,
    messages_for,
    times_for,
)
from habitcore.models.habit import (
    HabitInsight,
    HabitInsights,
    HabitPreferences,
    HabitRecord,
    NudgeMessage,
    NudgeType,
    NudgeUrgency,
    ReminderTime,
)
from habitcore.observability.metrics import record_nudge
from habitcore.utils.datetime_helpers import Clock, DateLike, SystemClock, date_key, days_between, time_of_day
from habitcore.utils.progress import (
    completion_rate,
    consecutive_runs,
    consistency_score,
    run_ending_at,
    trend_direction,
)
from habitcore.validators import normalize_category, snake_case_keys

logger = logging.getLogger(__name__)

# Days since last completion when a habit was never completed
NEVER_COMPLETED_DAYS = 999

STREAK_PROTECTION_MIN_STREAK = 7
ENCOURAGEMENT_MIN_STREAK = 3
COMEBACK_MIN_GAP_DAYS = 3


def classify_nudge(
    streak: int,
    days_since_last_completed: int,
    recent_achievement: bool = False,
    social_proof: bool = False,
) -> Tuple[NudgeType, NudgeUrgency]:
    """
    Pick the nudge type and urgency for a habit's current state

    Example:
        classify_nudge(10, 1) -> (STREAK_PROTECTION, HIGH)
        classify_nudge(0, 5) -> (COMEBACK, HIGH)
    """
    if streak >= STREAK_PROTECTION_MIN_STREAK and days_since_last_completed == 1:
        return NudgeType.STREAK_PROTECTION, NudgeUrgency.HIGH
    if streak >= ENCOURAGEMENT_MIN_STREAK and days_since_last_completed == 0:
        return NudgeType.ENCOURAGEMENT, NudgeUrgency.MEDIUM
    if days_since_last_completed >= COMEBACK_MIN_GAP_DAYS:
        return NudgeType.COMEBACK, NudgeUrgency.HIGH
    if recent_achievement:
        return NudgeType.ACHIEVEMENT_UNLOCK, NudgeUrgency.MEDIUM
    if social_proof:
        return NudgeType.SOCIAL_PROOF, NudgeUrgency.MEDIUM
    return NudgeType.REMINDER, NudgeUrgency.LOW


def generate_insights(completion_rate: int, consistency: int, trend: str) -> List[HabitInsight]:
    """
    Advisory messages for a habit's metrics, in rule order

    Several rules can fire at once.
    """
    insights: List[HabitInsight] = []

    if completion_rate < 50:
        insights.append(HabitInsight(
            type="improvement",
            title="Build Momentum",
            message="Start with small wins. Consistency beats perfection.",
            action="Set a smaller daily goal",
        ))
    elif completion_rate > 80:
        insights.append(HabitInsight(
            type="achievement",
            title="Strong Performance",
            message="You're in the top 20% of users. Keep it up!",
            action="Consider increasing your goal",
        ))

    if consistency < 40:
        insights.append(HabitInsight(
            type="strategy",
            title="Improve Consistency",
            message="Focus on building longer streaks rather than perfect completion.",
            action="Set streak goals",
        ))

    if trend == "declining":
        insights.append(HabitInsight(
            type="warning",
            title="Trend Alert",
            message="Your habit is declining. Time to recommit.",
            action="Review your strategy",
        ))
    elif trend == "improving":
        insights.append(HabitInsight(
            type="positive",
            title="Upward Trend",
            message="You're building unstoppable momentum!",
            action="Keep the pressure on",
        ))

    return insights


class HabitNudgeEngine:
    """Per-habit completion history, nudges and insights"""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        on_change: Optional[Callable[[], None]] = None,
        history_limit: int = NUDGE_HISTORY_LIMIT,
        completion_window_days: int = COMPLETION_RATE_WINDOW_DAYS,
        trend_window_days: int = TREND_WINDOW_DAYS,
    ):
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.on_change = on_change
        self.history_limit = history_limit
        self.completion_window_days = completion_window_days
        self.trend_window_days = trend_window_days
        self._habits: Dict[str, HabitRecord] = {}
        self._nudge_history: List[Dict[str, Any]] = []

    @property
    def nudge_history(self) -> List[Dict[str, Any]]:
        return list(self._nudge_history)

    def get_habit(self, category: str) -> Optional[HabitRecord]:
        """Copy of the stored record for a category"""
        category = normalize_category(category)
        record = self._habits.get(category) if category else None
        return record.model_copy(deep=True) if record else None

    # ========================================
    # Tracking
    # ========================================

    def track_habit(
        self,
        category: str,
        completed: bool = True,
        timestamp: Optional[DateLike] = None,
    ) -> Optional[HabitRecord]:
        """
        Record a habit completion for the day containing timestamp

        Repeat calls for the same day do not count twice.

        Args:
            category: Habit category (workout, nutrition, wellness, sleep, hydration, ...)
            completed: Whether the habit was completed
            timestamp: When it happened (defaults to now)

        Returns:
            Copy of the updated record, or None for a malformed category or timestamp
        """
        category = normalize_category(category)
        if category is None:
            return None

        try:
            key = date_key(timestamp if timestamp is not None else self.clock.now())
        except (TypeError, ValueError):
            logger.warning(f"Ignoring habit update for {category} with unreadable timestamp: {timestamp!r}")
            return None

        changed = False
        record = self._habits.get(category)
        if record is None:
            record = HabitRecord(preferences=HabitPreferences(reminder_time=self.get_optimal_time(category)))
            self._habits[category] = record
            changed = True

        if completed and key not in record.completion_dates:
            insort(record.completion_dates, key)
            self._recompute(record, anchor=key)
            changed = True
            logger.info(
                f"Tracked {category} on {key}: streak {record.streak}, "
                f"total {record.total_completions}"
            )
            self.schedule_next_nudge(category)

        if changed:
            self._notify_change()

        return record.model_copy(deep=True)

    def set_reminder_preferences(
        self,
        category: str,
        enabled: Optional[bool] = None,
        reminder_time: Optional[ReminderTime] = None,
    ) -> Optional[HabitRecord]:
        """Update reminder settings for a tracked habit; None if the habit is unknown"""
        category = normalize_category(category)
        record = self._habits.get(category) if category else None
        if record is None:
            return None

        if enabled is not None:
            record.preferences.enabled = enabled
        if reminder_time is not None:
            record.preferences.reminder_time = reminder_time
        self._notify_change()
        return record.model_copy(deep=True)

    def get_optimal_time(self, category: str, now: Optional[datetime] = None) -> ReminderTime:
        """Next optimal reminder time after now, or tomorrow's first one"""
        now = now or self.clock.now()
        times = times_for(category)
        for reminder in times:
            if reminder.hour > now.hour or (reminder.hour == now.hour and reminder.minute > now.minute):
                return reminder
        return times[0]

    def schedule_next_nudge(self, category: str) -> Optional[Dict[str, Any]]:
        """
        Queue tomorrow's reminder for a habit in the nudge history

        Returns:
            The history entry, or None when reminders are disabled
        """
        record = self._habits.get(category)
        if record is None or not record.preferences.enabled:
            return None

        reminder = record.preferences.reminder_time or self.get_optimal_time(category)
        tomorrow = self.clock.now() + timedelta(days=1)
        scheduled_for = tomorrow.replace(hour=reminder.hour, minute=reminder.minute, second=0, microsecond=0)

        entry = {
            "habit_category": category,
            "type": "scheduled_reminder",
            "scheduled_for": scheduled_for.isoformat(),
            "label": reminder.label,
        }
        self._append_history(entry)
        return entry

    # ========================================
    # Nudges
    # ========================================

    def generate_nudge(self, category: str, context: Optional[Mapping[str, Any]] = None) -> Optional[NudgeMessage]:
        """
        Generate a contextual nudge for a habit

        Context keys (snake_case or camelCase), all optional:
            streak: overrides the tracked streak
            days_since_last_completed: overrides the derived gap
            time_of_day: morning / afternoon / evening / night
            recent_achievement: truthy when an achievement was just unlocked
            social_proof: truthy to allow a social-proof nudge
            user_stats: {'achievements': {'recent': ...}} as sent by the dashboard

        Returns:
            NudgeMessage, or None for a malformed category
        """
        category = normalize_category(category)
        if category is None:
            return None

        ctx = snake_case_keys(context)
        record = self._habits.get(category) or HabitRecord()
        now = self.clock.now()

        streak = self._context_int(ctx, "streak", record.streak)
        days_since = self._context_int(
            ctx,
            "days_since_last_completed",
            days_between(record.last_completed, now) if record.last_completed else NEVER_COMPLETED_DAYS,
        )

        user_stats = snake_case_keys(ctx.get("user_stats"))
        recent_achievement = bool(
            ctx.get("recent_achievement")
            or (user_stats.get("achievements") or {}).get("recent")
        )

        nudge_type, urgency = classify_nudge(
            streak,
            days_since,
            recent_achievement=recent_achievement,
            social_proof=bool(ctx.get("social_proof")),
        )

        period = ctx.get("time_of_day")
        if not isinstance(period, str) or not period:
            period = time_of_day(now)
        message = self._create_message(category, nudge_type, urgency, streak, period)
        message.context = {
            "streak": streak,
            "days_since_last_completed": days_since,
            "time_of_day": period,
        }

        self._append_history({
            "habit_category": category,
            "type": "nudge",
            "nudge_type": nudge_type.value,
            "nudge_id": message.id,
            "created_at": message.created_at.isoformat(),
        })
        record_nudge(nudge_type.value)
        logger.debug(f"Generated {nudge_type.value} nudge for {category} (urgency {urgency.value})")
        return message

    def _create_message(
        self,
        category: str,
        nudge_type: NudgeType,
        urgency: NudgeUrgency,
        streak: int,
        period: str,
    ) -> NudgeMessage:
        messages = messages_for(category)

        if nudge_type == NudgeType.STREAK_PROTECTION:
            title = NUDGE_TITLES[nudge_type]
            body = STREAK_PROTECTION_BODY.format(streak=streak)
        elif nudge_type == NudgeType.ENCOURAGEMENT:
            title = NUDGE_TITLES[nudge_type]
            body = self.rng.choice(messages["streak"]).replace("{streak}", str(streak))
        elif nudge_type == NudgeType.COMEBACK:
            title = NUDGE_TITLES[nudge_type]
            body = self.rng.choice(messages["comeback"])
        elif nudge_type == NudgeType.SOCIAL_PROOF:
            title = NUDGE_TITLES[nudge_type]
            body = SOCIAL_PROOF_BODY.format(category=category)
        elif nudge_type == NudgeType.ACHIEVEMENT_UNLOCK:
            title = NUDGE_TITLES[nudge_type]
            body = ACHIEVEMENT_UNLOCK_BODY.format(category=category)
        else:
            title = TIME_OF_DAY_TITLES.get(period, DEFAULT_REMINDER_TITLE)
            body = self.rng.choice(messages["start"])

        return NudgeMessage(
            id=uuid4().hex,
            habit_category=category,
            nudge_type=nudge_type,
            title=title,
            body=body,
            action_label=ACTION_LABELS[nudge_type],
            urgency=urgency,
            created_at=self.clock.now(),
        )

    # ========================================
    # Insights
    # ========================================

    def get_habit_insights(self, category: str) -> Optional[HabitInsights]:
        """
        Habit record plus completion rate, consistency, trend and advice

        Returns:
            HabitInsights, or None if the habit has never been tracked
        """
        category = normalize_category(category)
        record = self._habits.get(category) if category else None
        if record is None:
            return None

        today = self.clock.now()
        rate = completion_rate(record.completion_dates, today, self.completion_window_days)
        consistency = consistency_score(record.completion_dates)
        trend = trend_direction(record.completion_dates, today, self.trend_window_days)

        return HabitInsights(
            **record.model_dump(),
            completion_rate=rate,
            consistency=consistency,
            trend=trend,
            insights=generate_insights(rate, consistency, trend),
        )

    def reset(self) -> None:
        """Clear habits and nudge history (explicit data reset)"""
        self._habits.clear()
        self._nudge_history.clear()
        self._notify_change()

    # ========================================
    # Persistence
    # ========================================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize state to a JSON-compatible dict"""
        return {
            "habits": {
                category: record.model_dump(mode="json")
                for category, record in self._habits.items()
            },
            "nudge_history": list(self._nudge_history),
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Replace state with a previously serialized dict; derived fields are recomputed"""
        data = data or {}
        habits: Dict[str, HabitRecord] = {}
        for category, raw in (data.get("habits") or {}).items():
            try:
                record = HabitRecord(**raw)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable habit record for {category}: {e}")
                continue
            record.completion_dates = sorted(set(record.completion_dates))
            self._recompute(record)
            habits[category] = record

        self._habits = habits
        self._nudge_history = list(data.get("nudge_history") or [])[-self.history_limit:]
        logger.info(f"Loaded {len(habits)} habits and {len(self._nudge_history)} nudge history entries")

    # ========================================
    # Internals
    # ========================================

    @staticmethod
    def _recompute(record: HabitRecord, anchor: Optional[str] = None) -> None:
        """
        Derive counts and streaks from the sorted completion days

        With an anchor the streak is the run ending on that day. Without one
        (loading stored state) the stored streak is kept, capped at the
        longest run the days allow.
        """
        dates = record.completion_dates
        record.total_completions = len(dates)
        record.last_completed = dates[-1] if dates else None

        runs = consecutive_runs(dates)
        longest_run = max(runs) if runs else 0
        if anchor is not None:
            record.streak = run_ending_at(dates, anchor)
        else:
            record.streak = max(0, min(record.streak, longest_run))
        record.longest_streak = max(record.longest_streak, longest_run)

    @staticmethod
    def _context_int(ctx: Mapping[str, Any], name: str, default: int) -> int:
        """Integer context value, or default when it is missing or unreadable"""
        value = ctx.get(name)
        if value is None:
            return default
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan
        if isinstance(value, bool) or not math.isfinite(number):
            logger.warning(f"Ignoring non-numeric nudge context {name}={value!r}")
            return default
        return int(number)

    def _append_history(self, entry: Dict[str, Any]) -> None:
        self._nudge_history.append(entry)
        if len(self._nudge_history) > self.history_limit:
            del self._nudge_history[:-self.history_limit]
        self._notify_change()

    def _notify_change(self) -> None:
        if self.on_change:
            self.on_change()
