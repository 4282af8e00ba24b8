"""
HabitCore - composition root

Builds the three engines for one user around a shared clock and store:
- streak milestones feed the achievement engine
- every engine change schedules a background save
- achievements unlocked today make the next nudge an achievement nudge

Example:
    core = await HabitCore.create("local-user", InMemoryStore())
    core.streaks.update_streak("workout")
    await core.flush()
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional
import logging
import random

from habitcore.config import LOG_LEVEL, REDIS_URL, STORE_BACKEND, validate_config
from habitcore.gamification.achievement_engine import AchievementEngine
from habitcore.gamification.nudge_engine import HabitNudgeEngine
from habitcore.gamification.streak_engine import StreakEngine
from habitcore.models.achievement import AchievementDefinition, UnlockedAchievement
from habitcore.models.habit import NudgeMessage
from habitcore.store.base import Store
from habitcore.store.memory_store import InMemoryStore
from habitcore.store.persistence import EngineStatePersister
from habitcore.utils.datetime_helpers import Clock, SystemClock, date_key

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the standard log format at LOG_LEVEL (or the given level)"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    )


def build_store(backend: Optional[str] = None) -> Store:
    """
    Store for the configured backend

    Raises:
        ValueError: If the configuration is invalid
    """
    validate_config()
    backend = backend or STORE_BACKEND
    if backend == "redis":
        from habitcore.store.redis_store import RedisStore
        logger.info("Using Redis store")
        return RedisStore(REDIS_URL)
    logger.info("Using in-memory store")
    return InMemoryStore()


@dataclass
class HabitCore:
    """
    Engines, clock and persistence for one user.

    Use create() rather than the constructor: it wires the engines together
    and loads stored state before the first mutation.
    """

    user_id: str
    store: Store
    clock: Clock
    streaks: StreakEngine
    achievements: AchievementEngine
    habits: HabitNudgeEngine
    persister: EngineStatePersister
    _recent_unlocks: List[UnlockedAchievement] = field(default_factory=list, init=False, repr=False)

    @classmethod
    async def create(
        cls,
        user_id: str,
        store: Optional[Store] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ) -> "HabitCore":
        """
        Build, wire and rehydrate the engines for a user.

        Args:
            user_id: Owner of the stored state
            store: Key-value store (defaults to the configured backend)
            clock: Time source shared by every engine
            rng: Random source for nudge copy

        Returns:
            HabitCore with stored state loaded
        """
        store = store if store is not None else build_store()
        clock = clock or SystemClock()

        streaks = StreakEngine(clock=clock)
        achievements = AchievementEngine(clock=clock)
        habits = HabitNudgeEngine(clock=clock, rng=rng)
        persister = EngineStatePersister(
            store,
            user_id,
            {"streaks": streaks, "achievements": achievements, "habits": habits},
        )

        core = cls(
            user_id=user_id,
            store=store,
            clock=clock,
            streaks=streaks,
            achievements=achievements,
            habits=habits,
            persister=persister,
        )

        # Load before wiring so rehydration does not schedule writes
        await persister.load()

        for engine in (streaks, achievements, habits):
            engine.on_change = persister.schedule_save
        streaks.add_milestone_listener(achievements.handle_streak_milestone)
        achievements.add_unlock_listener(core._on_unlock)

        logger.info(
            f"HabitCore ready for {user_id}: "
            f"{len(achievements.unlocked_ids)} achievements, {achievements.total_points} points"
        )
        return core

    def generate_nudge(self, category: str, context: Optional[Mapping[str, Any]] = None) -> Optional[NudgeMessage]:
        """
        Nudge for a habit, flagging achievements unlocked today

        An explicit recent_achievement / recentAchievement in context wins.
        """
        merged = dict(context or {})
        if "recent_achievement" not in merged and "recentAchievement" not in merged:
            self._prune_recent_unlocks(date_key(self.clock.now()))
            if self._recent_unlocks:
                merged["recent_achievement"] = self._recent_unlocks[-1].achievement_id
        return self.habits.generate_nudge(category, merged)

    async def flush(self) -> bool:
        """Wait until every change has been written to the store"""
        return await self.persister.flush()

    async def reset(self) -> None:
        """Clear every engine and delete the stored state"""
        self.streaks.reset()
        self.achievements.reset()
        self.habits.reset()
        self._recent_unlocks.clear()
        await self.persister.clear()
        logger.info(f"Reset all habit data for {self.user_id}")

    def _on_unlock(self, record: UnlockedAchievement, definition: AchievementDefinition) -> None:
        self._prune_recent_unlocks(date_key(record.unlocked_at))
        self._recent_unlocks.append(record)

    def _prune_recent_unlocks(self, today: str) -> None:
        """Keep only unlocks from the given day"""
        self._recent_unlocks = [r for r in self._recent_unlocks if date_key(r.unlocked_at) == today]
