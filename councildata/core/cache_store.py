"""Per-council cache store.

Holds the in-memory mapping ``council -> EntityCache``, persists the whole
mapping to a key-value storage backend, prunes expired entries on load and
guarantees at most one in-flight fetch per ``(council, kind)`` pair.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from councildata.core.errors import PersistenceError
from councildata.core.freshness import FreshnessPolicy
from councildata.core.storage import KeyValueStorage
from councildata.models.entities import CACHE_KINDS, CacheEntry, EntityCache
from councildata.utils.logger import get_logger

log = get_logger(__name__)

CACHE_STORAGE_KEY = "@data_cache"

Listener = Callable[[str, Optional[str]], None]
Loader = Callable[[], Awaitable[Any]]


def _check_kind(kind: str) -> None:
    if kind not in CACHE_KINDS:
        raise ValueError(f"unknown cache kind: {kind}")


class EntityCacheStore:
    """Single source of truth for what is currently known about each council."""

    def __init__(
        self,
        storage: KeyValueStorage,
        policy: Optional[FreshnessPolicy] = None,
        *,
        storage_key: str = CACHE_STORAGE_KEY,
    ) -> None:
        self.storage = storage
        self.policy = policy or FreshnessPolicy()
        self.storage_key = storage_key

        self._cache: Dict[str, EntityCache] = {}
        self._pending: Dict[Tuple[str, str], asyncio.Task] = {}
        self._listeners: Dict[str, List[Listener]] = {}
        self._persist_task: Optional[asyncio.Task] = None
        self._persist_dirty = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, key: str, kind: str) -> Optional[CacheEntry[Any]]:
        """Return the current entry for ``(key, kind)``; never fetches."""
        _check_kind(kind)
        entity = self._cache.get(key)
        if entity is None:
            return None
        return entity.entry(kind)

    def last_updated(self, key: str, kind: str) -> Optional[int]:
        entry = self.get(key, kind)
        return entry.timestamp if entry else None

    def keys(self) -> List[str]:
        return list(self._cache.keys())

    def is_fetching(self, key: str, kind: str) -> bool:
        return (key, kind) in self._pending

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """JSON-ready copy of the whole mapping."""
        return {key: entity.to_dict() for key, entity in self._cache.items()}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def put(self, key: str, kind: str, data: Any) -> CacheEntry[Any]:
        """Replace the entry for ``(key, kind)`` and persist the mapping."""
        _check_kind(kind)
        entry = CacheEntry(data=data, timestamp=self.policy.now())
        entity = self._cache.setdefault(key, EntityCache())
        entity.replace(kind, entry)

        self._notify(key, kind)
        self._schedule_persist()
        return entry

    def clear(self, key: Optional[str] = None) -> None:
        """Drop one council's cache, or everything including the durable copy."""
        if key is not None:
            if self._cache.pop(key, None) is not None:
                log.info("Cleared cache for {}", key)
                self._notify(key, None)
                self._schedule_persist()
            return

        cleared = list(self._cache.keys())
        self._cache = {}
        log.info("Cleared cache for all councils ({} entries)", len(cleared))
        for cleared_key in cleared:
            self._notify(cleared_key, None)
        self._schedule_persist()

    async def fetch(self, key: str, kind: str, loader: Loader) -> Any:
        """Run ``loader`` and store its result, sharing one run per pair.

        A second caller arriving while a fetch for the same pair is in flight
        awaits that fetch instead of starting another. On failure the
        exception reaches every waiter and the previous entry stays in place.
        """
        _check_kind(kind)
        pair = (key, kind)
        task = self._pending.get(pair)
        if task is None:
            task = asyncio.ensure_future(self._run_fetch(key, kind, loader))
            self._pending[pair] = task
        else:
            log.debug("Joining in-flight {} fetch for {}", kind, key)
        return await asyncio.shield(task)

    async def _run_fetch(self, key: str, kind: str, loader: Loader) -> Any:
        try:
            data = await loader()
            self.put(key, kind, data)
            return data
        finally:
            self._pending.pop((key, kind), None)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, key: str, listener: Listener) -> Callable[[], None]:
        """Call ``listener(key, kind)`` on every write to ``key``.

        ``kind`` is ``None`` when the council's cache was cleared.
        """
        listeners = self._listeners.setdefault(key, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            current = self._listeners.get(key)
            if current and listener in current:
                current.remove(listener)
                if not current:
                    self._listeners.pop(key, None)

        return unsubscribe

    def _notify(self, key: str, kind: Optional[str]) -> None:
        for listener in list(self._listeners.get(key, [])):
            try:
                listener(key, kind)
            except Exception as exc:  # noqa: BLE001
                log.exception("Cache listener for {} failed: {}", key, exc)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    async def load(self) -> List[str]:
        """Load the durable copy, dropping expired entries; returns loaded keys."""
        try:
            raw = await self.storage.get_item(self.storage_key)
        except Exception as exc:  # noqa: BLE001
            log.error("Failed to read cache from storage: {}", exc)
            return []

        if not raw:
            return []

        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                raise ValueError("cache record is not a mapping")
        except ValueError as exc:
            log.warning("Discarding unparseable cache record: {}", exc)
            await self._discard_record()
            return []

        loaded: List[str] = []
        dropped = 0
        for key, payload in parsed.items():
            try:
                entity = EntityCache.from_dict(payload)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                log.warning("Skipping malformed cache entry for {}: {}", key, exc)
                dropped += 1
                continue

            if entity.aggregate is not None and not self.policy.is_valid(entity.aggregate.timestamp):
                entity.aggregate = None
            if entity.recent_items is not None and not self.policy.is_valid(entity.recent_items.timestamp):
                entity.recent_items = None
            if entity.is_empty:
                dropped += 1
                continue
            # Writes made before load finished are newer than the durable copy.
            if key in self._cache:
                continue

            self._cache[key] = entity
            loaded.append(key)

        log.info("Loaded cache from storage ({} councils, {} dropped)", len(loaded), dropped)
        for key in loaded:
            self._notify(key, None)
        return loaded

    async def flush(self) -> None:
        """Wait until every scheduled persistence has been written."""
        while self._persist_task is not None and not self._persist_task.done():
            await asyncio.shield(self._persist_task)

    def _schedule_persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._persist_once())
            return

        if self._persist_task is not None and not self._persist_task.done():
            self._persist_dirty = True
            return
        self._persist_task = loop.create_task(self._persist_loop())

    async def _persist_loop(self) -> None:
        while True:
            self._persist_dirty = False
            await self._persist_once()
            if not self._persist_dirty:
                return

    async def _persist_once(self) -> None:
        try:
            if self._cache:
                await self.storage.set_item(self.storage_key, json.dumps(self.snapshot()))
            else:
                await self.storage.remove_item(self.storage_key)
        except Exception as exc:  # noqa: BLE001
            error = exc if isinstance(exc, PersistenceError) else PersistenceError(
                str(exc), key=self.storage_key, operation="persist"
            )
            log.error("Failed to persist cache: {}", error.as_dict())

    async def _discard_record(self) -> None:
        try:
            await self.storage.remove_item(self.storage_key)
        except Exception as exc:  # noqa: BLE001
            log.error("Failed to discard cache record: {}", exc)


__all__ = ["EntityCacheStore", "CACHE_STORAGE_KEY"]
