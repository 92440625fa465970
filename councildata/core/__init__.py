"""Core cache and policy modules exposed for external consumers."""

from .cache_store import EntityCacheStore
from .errors import CouncilDataError, PersistenceError, SourceError, SourcesUnavailableError
from .freshness import FreshnessPolicy
from .storage import JsonFileStorage, MemoryStorage

__all__ = [
    "EntityCacheStore",
    "CouncilDataError",
    "PersistenceError",
    "SourceError",
    "SourcesUnavailableError",
    "FreshnessPolicy",
    "JsonFileStorage",
    "MemoryStorage",
]
