"""
Periodic and foreground-driven refresh of the active council.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from councildata.core.aggregator import RECENT_REPORTS_LIMIT, AggregateOptions, SourceAggregator
from councildata.core.cache_store import EntityCacheStore
from councildata.core.freshness import FreshnessPolicy
from councildata.models.entities import KIND_AGGREGATE, KIND_RECENT_ITEMS
from councildata.refresh.app_state import ACTIVE, AppStateMonitor
from councildata.utils.logger import get_logger

log = get_logger(__name__)

JOB_ID = "refresh_active_entity"

RefreshFn = Callable[[str], Awaitable[None]]


def make_refresh_all(
    store: EntityCacheStore,
    aggregator: SourceAggregator,
    options: Optional[AggregateOptions] = None,
    recent_limit: int = RECENT_REPORTS_LIMIT,
) -> RefreshFn:
    """Build the default refresh function: aggregate and recent reports together."""

    async def refresh_all(key: str) -> None:
        results = await asyncio.gather(
            store.fetch(key, KIND_AGGREGATE, lambda: aggregator.fetch(key, options)),
            store.fetch(key, KIND_RECENT_ITEMS, lambda: aggregator.fetch_recent_reports(key, recent_limit)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    return refresh_all


class RefreshScheduler:
    """Keeps the active council's cache warm.

    A single interval job refreshes the active council while the app is
    foregrounded. Coming back to the foreground triggers one refresh when the
    cached aggregate is stale. Changing the active council only moves the job;
    it never fetches by itself.
    """

    def __init__(
        self,
        store: EntityCacheStore,
        refresh_fn: RefreshFn,
        policy: Optional[FreshnessPolicy] = None,
        app_state: Optional[AppStateMonitor] = None,
        job_scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        self.store = store
        self.refresh_fn = refresh_fn
        self.policy = policy or store.policy
        self.app_state = app_state or AppStateMonitor()
        self.job_scheduler = job_scheduler

        self.active_key: Optional[str] = None
        self._started = False
        self._owns_scheduler = job_scheduler is None
        self._unsubscribe_state: Optional[Callable[[], None]] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def interval_seconds(self) -> float:
        return self.policy.refresh_interval_ms / 1000

    def start(self) -> None:
        if self._started:
            return
        if self.job_scheduler is None:
            self.job_scheduler = AsyncIOScheduler()
        if self._owns_scheduler and not self.job_scheduler.running:
            self.job_scheduler.start()

        self._unsubscribe_state = self.app_state.subscribe(self.on_app_state_change)
        self._started = True
        if self.active_key:
            self._install_job()
        log.info("Refresh scheduler started (interval: {:.0f}s)", self.interval_seconds)

    def stop(self) -> None:
        if not self._started:
            return
        self._remove_job()
        if self._unsubscribe_state is not None:
            self._unsubscribe_state()
            self._unsubscribe_state = None
        if self._owns_scheduler and self.job_scheduler is not None and self.job_scheduler.running:
            self.job_scheduler.shutdown(wait=False)
        for task in list(self._tasks):
            task.cancel()
        self._started = False
        log.info("Refresh scheduler stopped")

    def set_active_key(self, key: Optional[str]) -> None:
        if key == self.active_key:
            return
        self._remove_job()
        self.active_key = key
        if key and self._started:
            self._install_job()
        log.info("Active council set to {}", key)

    async def on_timer(self) -> None:
        if not self.app_state.is_active or not self.active_key:
            return
        await self._refresh(self.active_key, "timer")

    def on_app_state_change(self, previous: str, current: str) -> None:
        if current != ACTIVE or previous == ACTIVE or not self.active_key:
            return
        entry = self.store.get(self.active_key, KIND_AGGREGATE)
        if entry is not None and not self.policy.is_stale(entry.timestamp):
            return
        self._spawn(self._refresh(self.active_key, "foreground"))

    async def drain(self) -> None:
        """Wait for refreshes started by app-state transitions."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _refresh(self, key: str, reason: str) -> None:
        log.info("Refreshing {} ({})", key, reason)
        try:
            await self.refresh_fn(key)
        except Exception as exc:  # noqa: BLE001
            log.warning("Scheduled refresh for {} failed: {}", key, exc)

    def _spawn(self, coro: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _install_job(self) -> None:
        self.job_scheduler.add_job(
            self.on_timer,
            IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
        )

    def _remove_job(self) -> None:
        if self.job_scheduler is None:
            return
        if self.job_scheduler.get_job(JOB_ID) is not None:
            self.job_scheduler.remove_job(JOB_ID)


__all__ = ["RefreshScheduler", "make_refresh_all", "JOB_ID"]
