"""Key-value store adapter used for engine state"""
from typing import Any, Optional, Protocol


class Store(Protocol):
    """
    Async key-value store holding JSON-compatible values

    Implementations raise StorageError when the backend fails; a missing
    key is not an error and reads as None.
    """

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...
