"""
Achievement System

Tracks metric progress and unlocks catalog achievements:
- Requirements are conjunctive across metrics
- Each achievement unlocks exactly once and awards its points once
- Prerequisites must already be unlocked when an evaluation pass starts
- Level is derived from cumulative points

Two entry points trigger unlocking and share one evaluation routine:
- update_progress(): incremental metric updates
- check_achievements(): ad-hoc stats snapshots from the caller
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence
import logging
import math

from habitcore.exceptions import InvariantViolation
from habitcore.gamification.achievement_catalog import ACHIEVEMENTS, normalize_stats
from habitcore.gamification.level_system import calculate_level
from habitcore.models.achievement import (
    AchievementCheckResult,
    AchievementDefinition,
    AchievementProgress,
    UnlockedAchievement,
    UserLevel,
)
from habitcore.models.streak import StreakMilestone
from habitcore.observability.metrics import record_achievement_unlocked
from habitcore.utils.datetime_helpers import Clock, SystemClock
from habitcore.utils.progress import meets_requirement, percentage_of_target, requirement_percentage
from habitcore.validators import normalize_achievement_id

logger = logging.getLogger(__name__)

UnlockListener = Callable[[UnlockedAchievement, AchievementDefinition], None]


class AchievementEngine:
    """Metric progress, unlocked achievements and points for one user"""

    def __init__(
        self,
        catalog: Sequence[AchievementDefinition] = ACHIEVEMENTS,
        clock: Optional[Clock] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.catalog = tuple(catalog)
        self.clock = clock or SystemClock()
        self.on_change = on_change
        self._by_id: Dict[str, AchievementDefinition] = {a.id: a for a in self.catalog}
        self._progress: Dict[str, float] = {}
        self._unlocked: Dict[str, UnlockedAchievement] = {}
        self._total_points = 0
        self._unlock_listeners: List[UnlockListener] = []

    def add_unlock_listener(self, listener: UnlockListener) -> None:
        """Register a callback for newly unlocked achievements"""
        self._unlock_listeners.append(listener)

    @property
    def total_points(self) -> int:
        return self._total_points

    @property
    def unlocked_ids(self) -> frozenset:
        return frozenset(self._unlocked)

    @property
    def progress(self) -> Dict[str, float]:
        return dict(self._progress)

    def get_definition(self, achievement_id: str) -> Optional[AchievementDefinition]:
        return self._by_id.get(achievement_id)

    def get_unlocked(self, achievement_id: str) -> Optional[UnlockedAchievement]:
        return self._unlocked.get(achievement_id)

    # ========================================
    # Unlock triggers
    # ========================================

    def update_progress(self, metric_name: str, value: float) -> List[UnlockedAchievement]:
        """
        Overwrite a metric and unlock anything that became eligible

        Decreases are accepted; they simply re-evaluate against the new value.
        Achievements whose prerequisites unlock in the same call follow in
        prerequisite order.

        Args:
            metric_name: Metric such as 'workouts', 'streak', 'meal_days'
            value: Latest value for the metric

        Returns:
            Newly unlocked achievements (empty for invalid input)
        """
        if not isinstance(metric_name, str) or not metric_name:
            logger.warning(f"Ignoring progress update for malformed metric {metric_name!r}")
            return []
        if isinstance(value, bool):
            value = 1.0 if value else 0.0
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            logger.warning(f"Ignoring non-numeric value {value!r} for metric '{metric_name}'")
            return []

        previous = self._progress.get(metric_name)
        self._progress[metric_name] = float(value)
        if previous != self._progress[metric_name]:
            self._notify_change()

        # Repeat until stable so a chain unlocked by one value settles now
        unlocked: List[UnlockedAchievement] = []
        while True:
            results = self._evaluate_and_unlock(self._progress)
            newly = [r.unlocked for r in results if r.newly_unlocked]
            if not newly:
                return unlocked
            unlocked.extend(newly)

    def check_achievements(
        self,
        stats: Optional[Mapping[str, Any]] = None,
        trigger: Optional[str] = None,
    ) -> List[AchievementCheckResult]:
        """
        Evaluate the full catalog against current progress plus a stats snapshot

        Snapshot values override stored progress for this pass only. Ids in
        the snapshot's `unlocked_achievements` count as already unlocked.

        Args:
            stats: e.g. {'current_streak': 7, 'unlocked_achievements': []}
            trigger: What prompted the check ('workout_completed', 'streak_updated', ...)

        Returns:
            One entry per already-unlocked achievement (newly_unlocked=False)
            and per achievement unlocked by this pass (newly_unlocked=True)
        """
        snapshot_metrics, snapshot_unlocked = normalize_stats(stats or {})
        metrics = {**self._progress, **snapshot_metrics}

        results = self._evaluate_and_unlock(metrics, snapshot_unlocked)

        newly = sum(1 for r in results if r.newly_unlocked)
        logger.debug(f"Achievement check ({trigger or 'manual'}): {newly} newly unlocked")
        return results

    def unlock_achievement(self, achievement_id: str) -> Optional[UnlockedAchievement]:
        """
        Explicitly unlock an achievement

        Returns:
            The new record, or None if the id is unknown, already unlocked,
            or its prerequisites are not unlocked
        """
        achievement_id = normalize_achievement_id(achievement_id)
        if achievement_id is None:
            return None

        definition = self._by_id.get(achievement_id)
        if definition is None:
            logger.warning(f"Unknown achievement id '{achievement_id}'")
            return None

        if achievement_id in self._unlocked:
            logger.debug(f"Achievement {achievement_id} already unlocked")
            return None

        missing = [p for p in definition.prerequisites if p not in self._unlocked]
        if missing:
            logger.info(f"Achievement {achievement_id} blocked by prerequisites: {missing}")
            return None

        return self._unlock(definition)

    def handle_streak_milestone(self, milestone: StreakMilestone) -> List[UnlockedAchievement]:
        """Raise the 'streak' metric to a reached milestone and re-evaluate"""
        current = self._progress.get("streak", 0)
        return self.update_progress("streak", max(current, milestone.count))

    # ========================================
    # Read-only projections
    # ========================================

    def get_achievement_progress(
        self,
        achievement_id: str,
        metric_snapshot: Optional[Mapping[str, Any]] = None,
    ) -> Optional[AchievementProgress]:
        """
        Progress toward one achievement

        Single-metric requirements report the metric value and threshold
        directly. Multi-metric requirements report sums of the clamped
        values and of the thresholds, with the percentage averaged per metric.

        Args:
            achievement_id: Catalog id
            metric_snapshot: Stats to measure against (defaults to stored progress)

        Returns:
            AchievementProgress, or None for an unknown id
        """
        definition = self._by_id.get(achievement_id)
        if definition is None:
            logger.warning(f"Progress requested for unknown achievement '{achievement_id}'")
            return None

        if metric_snapshot is None:
            metrics, extra_unlocked = self._progress, []
        else:
            metrics, extra_unlocked = normalize_stats(metric_snapshot)

        requirement = definition.requirement
        if len(requirement) == 1:
            metric, target = next(iter(requirement.items()))
            current = metrics.get(metric, 0)
            percentage = percentage_of_target(current, target)
        else:
            current = sum(min(max(metrics.get(m, 0), 0), t) for m, t in requirement.items())
            target = sum(requirement.values())
            percentage = requirement_percentage(requirement, metrics)

        completed = (
            achievement_id in self._unlocked
            or achievement_id in extra_unlocked
            or percentage == 100
        )
        return AchievementProgress(
            current=current,
            target=target,
            percentage=percentage,
            completed=completed,
        )

    def get_user_level(self, points: Optional[int] = None) -> UserLevel:
        """Level for the given points, defaulting to the engine's total"""
        return calculate_level(self._total_points if points is None else points)

    def get_achievements_by_category(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Catalog grouped by category with unlock state and percentage progress

        Returns:
            {'workout': [{...definition, 'unlocked': bool, 'progress': int}], ...}
        """
        categories: Dict[str, List[Dict[str, Any]]] = {}
        for definition in self.catalog:
            unlocked = definition.id in self._unlocked
            progress = 100 if unlocked else requirement_percentage(definition.requirement, self._progress)
            categories.setdefault(definition.category.value, []).append({
                **definition.model_dump(mode="json"),
                "unlocked": unlocked,
                "progress": progress,
            })
        return categories

    def get_recent_achievements(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Most recently unlocked achievements, newest first"""
        recent = sorted(self._unlocked.values(), key=lambda r: r.unlocked_at, reverse=True)
        return [
            {
                **self._by_id[record.achievement_id].model_dump(mode="json"),
                "unlocked_at": record.unlocked_at,
                "points_awarded": record.points,
            }
            for record in recent[:max(limit, 0)]
        ]

    def get_streak_achievements(self) -> List[AchievementDefinition]:
        """Achievements gated on the 'streak' metric, by ascending threshold"""
        streak_achievements = [a for a in self.catalog if "streak" in a.requirement]
        return sorted(streak_achievements, key=lambda a: a.requirement["streak"])

    def verify_invariants(self) -> None:
        """
        Raise InvariantViolation if the engine state is inconsistent

        Checked:
        - total points equal the sum of awarded points
        - every unlocked id is in the catalog
        """
        awarded = sum(record.points for record in self._unlocked.values())
        if awarded != self._total_points:
            raise InvariantViolation(
                f"Total points {self._total_points} != awarded points {awarded}",
                operation="verify_invariants",
            )
        unknown = [aid for aid in self._unlocked if aid not in self._by_id]
        if unknown:
            raise InvariantViolation(
                f"Unlocked achievements missing from catalog: {unknown}",
                operation="verify_invariants",
            )

    def reset(self) -> None:
        """Clear progress and unlocks (explicit data reset)"""
        self._progress.clear()
        self._unlocked.clear()
        self._total_points = 0
        self._notify_change()

    # ========================================
    # Persistence
    # ========================================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize state to a JSON-compatible dict"""
        return {
            "progress": dict(self._progress),
            "unlocked": [record.model_dump(mode="json") for record in self._unlocked.values()],
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        """
        Replace state with a previously serialized dict

        Total points are recomputed from the unlocked records. Records for
        ids missing from the catalog, and duplicates, are dropped.
        """
        data = data or {}
        progress = {
            name: float(value)
            for name, value in (data.get("progress") or {}).items()
            if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
        }

        unlocked: Dict[str, UnlockedAchievement] = {}
        for raw in data.get("unlocked") or []:
            try:
                record = UnlockedAchievement(**raw)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable unlocked achievement: {e}")
                continue
            if record.achievement_id not in self._by_id:
                logger.warning(f"Dropping unlocked achievement not in catalog: {record.achievement_id}")
                continue
            unlocked.setdefault(record.achievement_id, record)

        self._progress = progress
        self._unlocked = unlocked
        self._total_points = sum(record.points for record in unlocked.values())
        logger.info(
            f"Loaded {len(unlocked)} unlocked achievements, {self._total_points} points, "
            f"{len(progress)} metrics"
        )

    # ========================================
    # Internals
    # ========================================

    def _evaluate_and_unlock(
        self,
        metrics: Mapping[str, float],
        extra_unlocked: Iterable[str] = (),
    ) -> List[AchievementCheckResult]:
        """
        Shared evaluation pass for both unlock entry points

        Prerequisites are judged against the unlocked set as it stood when
        the pass began.
        """
        already_unlocked = set(self._unlocked) | set(extra_unlocked)
        results: List[AchievementCheckResult] = []

        for definition in self.catalog:
            if definition.id in already_unlocked:
                results.append(AchievementCheckResult(
                    achievement=definition,
                    newly_unlocked=False,
                    unlocked=self._unlocked.get(definition.id),
                ))
                continue

            if not meets_requirement(definition.requirement, metrics):
                continue

            if not all(p in already_unlocked for p in definition.prerequisites):
                logger.debug(f"Achievement {definition.id} eligible but waiting on prerequisites")
                continue

            record = self._unlock(definition)
            if record is not None:
                results.append(AchievementCheckResult(
                    achievement=definition,
                    newly_unlocked=True,
                    unlocked=record,
                ))

        return results

    def _unlock(self, definition: AchievementDefinition) -> Optional[UnlockedAchievement]:
        # Check and insert with no suspension point in between
        if definition.id in self._unlocked:
            return None

        record = UnlockedAchievement(
            achievement_id=definition.id,
            unlocked_at=self.clock.now(),
            points=definition.points,
        )
        self._unlocked[definition.id] = record
        self._total_points += definition.points

        logger.info(
            f"Unlocked achievement: {definition.id} ({definition.title}) "
            f"+{definition.points} points, total {self._total_points}"
        )
        record_achievement_unlocked(definition.tier.value)
        self._notify_change()

        for listener in self._unlock_listeners:
            try:
                listener(record, definition)
            except Exception as e:
                logger.error(f"Achievement unlock listener failed: {e}", exc_info=True)

        return record

    def _notify_change(self) -> None:
        if self.on_change:
            self.on_change()
