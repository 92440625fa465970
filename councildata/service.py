"""
Composition root: wires settings, sources, cache and scheduler together.
"""

from __future__ import annotations

from typing import Optional

from councildata.core.aggregator import AggregateOptions, SourceAggregator
from councildata.core.cache_store import EntityCacheStore
from councildata.core.config import Settings, get_settings
from councildata.core.fetcher import Fetcher
from councildata.core.freshness import FreshnessPolicy
from councildata.core.storage import JsonFileStorage, KeyValueStorage
from councildata.queries.council_data import CouncilDataQuery
from councildata.queries.recent_reports import RecentReportsQuery
from councildata.refresh.app_state import AppStateMonitor
from councildata.refresh.scheduler import RefreshScheduler, make_refresh_all
from councildata.sources.directory import StaticCouncilDirectory
from councildata.sources.fixmystreet import FixMyStreetSource
from councildata.sources.news_api import NewsApiSource
from councildata.sources.rss_feed import RssNewsSource
from councildata.utils.logger import get_logger

log = get_logger(__name__)


class CouncilDataService:
    """Owns one cache store and hands out queries bound to it."""

    def __init__(
        self,
        settings: Settings,
        store: EntityCacheStore,
        aggregator: SourceAggregator,
        scheduler: RefreshScheduler,
        app_state: AppStateMonitor,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.aggregator = aggregator
        self.scheduler = scheduler
        self.app_state = app_state
        self.fetcher = fetcher
        self._started = False

    def default_options(self) -> AggregateOptions:
        return AggregateOptions(max_reports=self.settings.max_reports, max_news=self.settings.max_news)

    async def start(self, *, schedule: bool = True) -> None:
        """Load the durable cache and, optionally, start periodic refresh."""
        loaded = await self.store.load()
        log.info("Council data service started ({} cached councils)", len(loaded))
        if schedule:
            self.scheduler.start()
        self._started = True

    async def stop(self) -> None:
        self.scheduler.stop()
        await self.store.flush()
        if self.fetcher is not None:
            await self.fetcher.close()
        self._started = False
        log.info("Council data service stopped")

    def set_active_council(self, council: Optional[str]) -> None:
        self.scheduler.set_active_key(council)

    def council_data(self, council: str, options: Optional[AggregateOptions] = None) -> CouncilDataQuery:
        return CouncilDataQuery(self.store, self.aggregator, council, options or self.default_options())

    def recent_reports(
        self, council: str, status: Optional[str] = None, limit: Optional[int] = None
    ) -> RecentReportsQuery:
        return RecentReportsQuery(
            self.store,
            self.aggregator,
            council,
            status=status,
            limit=limit,
            fetch_limit=self.settings.recent_reports_limit,
        )

    def clear(self, council: Optional[str] = None) -> None:
        self.store.clear(council)

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()


def build_aggregator(settings: Settings, fetcher: Fetcher, directory: StaticCouncilDirectory) -> SourceAggregator:
    fixmystreet = FixMyStreetSource(fetcher) if settings.enable_fixmystreet else None
    rss = RssNewsSource(fetcher, directory) if settings.enable_rss else None
    news_api = NewsApiSource(fetcher, settings.news_api_key) if settings.enable_newsapi else None
    if news_api is not None and not settings.news_api_configured:
        log.info("NEWS_API_KEY not configured; NewsAPI will contribute nothing")

    return SourceAggregator(
        report_source=fixmystreet,
        primary_news=rss,
        secondary_news=news_api,
        updates_source=fixmystreet,
        directory=directory,
        max_updates=settings.max_updates,
    )


def create_service(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[KeyValueStorage] = None,
    policy: Optional[FreshnessPolicy] = None,
    fetcher: Optional[Fetcher] = None,
) -> CouncilDataService:
    """Build a service from settings; storage/policy/fetcher may be injected."""
    settings = settings or get_settings()
    fetcher = fetcher or Fetcher(timeout=settings.http_timeout, max_retries=settings.http_max_retries)
    directory = StaticCouncilDirectory(path=settings.directory_file)
    aggregator = build_aggregator(settings, fetcher, directory)

    policy = policy or FreshnessPolicy(
        stale_after_ms=settings.stale_after_ms,
        hard_expire_after_ms=settings.hard_expire_after_ms,
        refresh_interval_ms=settings.refresh_interval_ms,
    )
    store = EntityCacheStore(
        storage or JsonFileStorage(settings.storage_dir),
        policy,
        storage_key=settings.storage_key,
    )

    app_state = AppStateMonitor()
    options = AggregateOptions(max_reports=settings.max_reports, max_news=settings.max_news)
    scheduler = RefreshScheduler(
        store,
        make_refresh_all(store, aggregator, options, settings.recent_reports_limit),
        policy,
        app_state,
    )
    return CouncilDataService(settings, store, aggregator, scheduler, app_state, fetcher)


__all__ = ["CouncilDataService", "create_service", "build_aggregator"]
