"""Engine state storage: store adapters and the persistence layer"""

from habitcore.store.base import Store
from habitcore.store.memory_store import InMemoryStore
from habitcore.store.persistence import EngineStatePersister

__all__ = [
    "Store",
    "InMemoryStore",
    "EngineStatePersister",
]
