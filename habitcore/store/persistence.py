"""
Engine state persistence

Engines mutate synchronously and report each change through their
on_change callback. The persister turns those notifications into
asynchronous store writes:
- load(): rehydrate every engine once at startup
- schedule_save(): queue a background write (or mark dirty without a loop)
- flush(): wait until every queued change is written
- clear(): remove the stored blobs (explicit data reset)

Store failures are logged and counted, never raised: a failed load means a
first run, a failed save leaves in-memory state authoritative until the
next successful write.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from habitcore.config import STORAGE_KEY_PREFIX, STORE_SAVE_RETRIES
from habitcore.observability.metrics import record_store_operation
from habitcore.resilience.retry import retry_with_backoff
from habitcore.store.base import Store

logger = logging.getLogger(__name__)


class PersistentEngine(Protocol):
    def to_dict(self) -> Dict[str, Any]:
        ...

    def load_dict(self, data: Dict[str, Any]) -> None:
        ...


def storage_key(user_id: str, name: str, prefix: str = STORAGE_KEY_PREFIX) -> str:
    """
    Store key for one engine's blob

    Example:
        storage_key("local-user", "streaks") -> "habitcore:local-user:streaks"
    """
    return f"{prefix}:{user_id}:{name}"


class EngineStatePersister:
    """Write-after-mutate persistence for a set of named engines"""

    def __init__(
        self,
        store: Store,
        user_id: str,
        engines: Mapping[str, PersistentEngine],
        prefix: str = STORAGE_KEY_PREFIX,
        retries: int = STORE_SAVE_RETRIES,
    ):
        self.store = store
        self.user_id = user_id
        self.engines = dict(engines)
        self.prefix = prefix
        self.retries = retries
        self._dirty = False
        self._last_ok = True
        self._task: Optional[asyncio.Task] = None

    @property
    def dirty(self) -> bool:
        """True while changes are waiting to be written"""
        return self._dirty

    def key_for(self, name: str) -> str:
        return storage_key(self.user_id, name, self.prefix)

    async def load(self) -> Dict[str, bool]:
        """
        Rehydrate every engine from the store

        Missing blobs and store failures leave the engine empty.

        Returns:
            Engine name -> whether stored state was found and applied
        """
        loaded: Dict[str, bool] = {}
        for name, engine in self.engines.items():
            key = self.key_for(name)
            try:
                data = await self.store.get(key)
                record_store_operation("load", success=True)
            except Exception as e:
                logger.error(f"Failed to load {key}, starting empty: {e}")
                record_store_operation("load", success=False)
                loaded[name] = False
                continue

            if not isinstance(data, dict):
                if data is not None:
                    logger.warning(f"Ignoring malformed blob at {key}: {type(data).__name__}")
                loaded[name] = False
                continue

            try:
                engine.load_dict(data)
            except (TypeError, ValueError) as e:
                logger.error(f"Failed to apply stored state from {key}, starting empty: {e}")
                loaded[name] = False
                continue
            loaded[name] = True

        logger.info(f"Loaded state for {self.user_id}: {loaded}")
        return loaded

    def schedule_save(self) -> None:
        """
        Queue a write of the current engine state

        Inside a running event loop the write happens in a background task;
        repeated calls while it is pending coalesce into one more pass.
        Without a loop the state is only marked dirty until flush().
        """
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        if self._task is None or self._task.done():
            self._task = loop.create_task(self._drain())

    async def flush(self) -> bool:
        """
        Wait for pending writes and retry any that failed

        Returns:
            True if the current engine state is in the store
        """
        if self._task is not None and not self._task.done():
            await self._task
        if self._dirty:
            await self._drain()
        return self._last_ok

    async def save(self) -> bool:
        """
        Write every engine blob

        Each write is retried on transient failure; a write that still
        fails is logged and skipped.

        Returns:
            True if every blob was written
        """
        # Snapshot synchronously so all blobs reflect the same moment
        snapshot = {self.key_for(name): engine.to_dict() for name, engine in self.engines.items()}

        ok = True
        for key, blob in snapshot.items():
            try:
                await retry_with_backoff(self.store.set, key, blob, max_retries=self.retries)
                record_store_operation("save", success=True)
            except Exception as e:
                logger.error(f"Failed to save {key}: {e}")
                record_store_operation("save", success=False)
                ok = False
        return ok

    async def clear(self) -> None:
        """Delete every stored blob for this user"""
        self._dirty = False
        if self._task is not None and not self._task.done():
            await self._task
        self._dirty = False
        self._last_ok = True

        for name in self.engines:
            key = self.key_for(name)
            try:
                await self.store.delete(key)
                record_store_operation("delete", success=True)
            except Exception as e:
                logger.error(f"Failed to delete {key}: {e}")
                record_store_operation("delete", success=False)
        logger.info(f"Cleared stored state for {self.user_id}")

    async def _drain(self) -> bool:
        while self._dirty:
            self._dirty = False
            self._last_ok = await self.save()
            if not self._last_ok:
                # Keep the change queued so the next flush() writes it
                self._dirty = True
                break
        return self._last_ok
