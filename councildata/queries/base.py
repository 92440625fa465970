"""
Observable cache-backed queries with stale-while-revalidate reads.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from councildata.core.cache_store import EntityCacheStore
from councildata.models.entities import CacheEntry
from councildata.utils.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")

ResultListener = Callable[["QueryResult"], None]


@dataclass(slots=True, frozen=True)
class QueryResult(Generic[T]):
    data: Optional[T]
    loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[int] = None
    is_stale: bool = False


class CacheQuery(Generic[T]):
    """Shared read/refresh behaviour for one ``(council, kind)`` pair.

    Subclasses set ``kind`` and ``error_message`` and implement ``load()``
    and ``present()``.
    """

    kind: str = ""
    error_message: str = "Failed to load data. Please try again."

    def __init__(self, store: EntityCacheStore, key: str) -> None:
        self.store = store
        self.key = key
        self.policy = store.policy

        self._data: Any = None
        self._last_updated: Optional[int] = None
        self._loading = False
        self._error: Optional[str] = None
        self._observed = False
        self._closed = False
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[ResultListener] = []
        self._unsubscribe = store.subscribe(key, self._on_store_change)

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------
    async def load(self) -> Any:
        raise NotImplementedError

    def present(self, data: Any) -> Optional[T]:
        return data

    def empty(self) -> Optional[T]:
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def result(self) -> QueryResult[T]:
        data = self.present(self._data) if self._data is not None else self.empty()
        return QueryResult(
            data=data,
            loading=self._loading,
            error=self._error,
            last_updated=self._last_updated,
            is_stale=self._data is not None and self.policy.is_stale(self._last_updated),
        )

    def observe(self) -> QueryResult[T]:
        """Return the current result, kicking off a fetch on first observation.

        A valid cached entry is returned immediately; if it is stale a single
        background refresh starts. A missing or expired entry starts a
        foreground fetch and reports ``loading``. Must be called from inside a
        running event loop when a fetch is needed.
        """
        if not self._observed and not self._closed:
            self._observed = True
            entry = self.store.get(self.key, self.kind)
            if entry is not None and self.policy.is_valid(entry.timestamp):
                self._serve(entry)
                if self.policy.is_stale(entry.timestamp):
                    log.debug("Serving stale {} for {}, revalidating", self.kind, self.key)
                    self._start(loading=False)
            else:
                self._start(loading=True)
        return self.result

    async def refresh(self) -> QueryResult[T]:
        """Refetch regardless of freshness, serving the previous value meanwhile."""
        self._observed = True
        self._loading = True
        self._emit()
        await self._fetch()
        return self.result

    async def wait(self) -> QueryResult[T]:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        return self.result

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._closed = True
        self._unsubscribe()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _serve(self, entry: CacheEntry[Any]) -> None:
        self._data = entry.data
        self._last_updated = entry.timestamp

    def _start(self, *, loading: bool) -> None:
        if self._task is not None and not self._task.done():
            return
        self._loading = loading
        self._task = asyncio.get_running_loop().create_task(self._fetch())

    async def _fetch(self) -> None:
        try:
            await self.store.fetch(self.key, self.kind, self.load)
            self._error = None
        except Exception as exc:  # noqa: BLE001
            log.warning("Fetching {} for {} failed: {}", self.kind, self.key, exc)
            self._error = self.error_message
        finally:
            self._loading = False
            self._emit()

    def _on_store_change(self, key: str, kind: Optional[str]) -> None:
        if self._closed or (kind is not None and kind != self.kind):
            return
        entry = self.store.get(key, self.kind)
        if entry is not None:
            if kind == self.kind:
                self._error = None
            self._serve(entry)
        elif kind is None:
            self._data = None
            self._last_updated = None
        self._emit()

    def _emit(self) -> None:
        if self._closed:
            return
        result = self.result
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception as exc:  # noqa: BLE001
                log.exception("Query listener for {} failed: {}", self.key, exc)


__all__ = ["CacheQuery", "QueryResult"]
