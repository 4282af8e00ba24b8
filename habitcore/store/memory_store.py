"""
In-process store

Values are deep-copied on the way in and out so engine state cannot be
mutated through a stored reference. Nothing survives the process.
"""

import copy
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dict-backed Store for tests and offline use"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        logger.debug(f"Memory store GET {key}: {'hit' if value is not None else 'miss'}")
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        logger.debug(f"Memory store SET {key}")

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
        logger.debug(f"Memory store DELETE {key}")

    def keys(self):
        """Stored keys, for inspection in tests"""
        return list(self._data.keys())
