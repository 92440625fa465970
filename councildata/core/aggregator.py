"""Multi-source aggregation for one council.

Queries the report, news, updates and directory collaborators and merges
their results into a single ``AggregateResult``. Every upstream step owns its
failure: a broken source contributes nothing and is logged, and only when all
attempted upstream sources fail does the fetch raise.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import List, Optional

from councildata.core.errors import EntityResolutionError, SourcesUnavailableError
from councildata.models.entities import AggregateResult, NewsItem, ReportItem, ReportStats
from councildata.sources.base import DepartmentLookup, NewsSource, ReportSource, Summarizer, UpdatesSource
from councildata.utils.logger import get_logger, log_execution_time

log = get_logger(__name__)

MAX_UPDATES = 5
SUMMARY_LIMIT = 3
RECENT_REPORTS_LIMIT = 100
UPDATE_URL = "https://www.fixmystreet.com/report/{id}"


@dataclass(slots=True, frozen=True)
class AggregateOptions:
    include_reports: bool = True
    include_news: bool = True
    include_updates: bool = True
    include_departments: bool = False
    include_report_departments: bool = False
    include_news_summaries: bool = False
    max_reports: int = 20
    max_news: int = 10


@dataclass(slots=True)
class _FetchOutcome:
    attempted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def attempt(self, name: str) -> None:
        self.attempted.append(name)

    def fail(self, name: str) -> None:
        self.failed.append(name)

    @property
    def total_failure(self) -> bool:
        return bool(self.attempted) and len(self.failed) == len(self.attempted)


def _source_name(source: object, fallback: str) -> str:
    return str(getattr(source, "name", fallback))


def update_from_report(report: ReportItem) -> NewsItem:
    return NewsItem(
        id=report.id,
        title=f"Fixed: {report.title}",
        summary=report.description,
        date=report.date,
        url=UPDATE_URL.format(id=report.id),
        source="council",
        category="Update",
    )


class SourceAggregator:
    """Builds one ``AggregateResult`` from independent, fallible sources."""

    def __init__(
        self,
        report_source: Optional[ReportSource] = None,
        primary_news: Optional[NewsSource] = None,
        secondary_news: Optional[NewsSource] = None,
        updates_source: Optional[UpdatesSource] = None,
        directory: Optional[DepartmentLookup] = None,
        summarizer: Optional[Summarizer] = None,
        *,
        max_updates: int = MAX_UPDATES,
    ):
        self.report_source = report_source
        self.primary_news = primary_news
        self.secondary_news = secondary_news
        self.updates_source = updates_source
        self.directory = directory
        self.summarizer = summarizer
        self.max_updates = max_updates

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @log_execution_time
    async def fetch(self, council: str, options: Optional[AggregateOptions] = None) -> AggregateResult:
        """Fetch and merge everything requested for ``council``.

        Raises:
            EntityResolutionError: the council key is blank.
            SourcesUnavailableError: every attempted upstream source failed.
        """
        if not council or not council.strip():
            raise EntityResolutionError("Council name is required", council=council)

        options = options or AggregateOptions()
        outcome = _FetchOutcome()

        reports_supported = self.report_source is not None and self.report_source.supports(council)
        updates_supported = self.updates_source is not None and self.updates_source.supports(council)

        log.info("Fetching council data for {}", council)
        reports, news, updates = await asyncio.gather(
            self._fetch_reports(council, options, outcome) if options.include_reports and reports_supported else _empty(),
            self._fetch_news(council, options, outcome) if options.include_news else _empty(),
            self._fetch_updates(council, outcome) if options.include_updates and updates_supported else _empty(),
        )

        if outcome.total_failure:
            raise SourcesUnavailableError(
                f"All sources failed for {council}",
                council=council,
                failed_sources=outcome.failed,
            )

        departments = None
        if options.include_departments and self.directory is not None:
            departments = self.directory.lookup(council)

        # Stats always describe the full fetched set, never a filtered view.
        stats = ReportStats.from_reports(reports)
        if options.include_report_departments:
            reports = self._attach_departments(council, reports)

        return AggregateResult(
            entity_name=council,
            reports=reports,
            news=news,
            updates=updates,
            stats=stats,
            departments=departments,
        )

    async def fetch_recent_reports(self, council: str, limit: int = RECENT_REPORTS_LIMIT) -> List[ReportItem]:
        """Unfiltered recent reports for list and map views."""
        if not council or not council.strip():
            raise EntityResolutionError("Council name is required", council=council)
        if self.report_source is None or not self.report_source.supports(council):
            return []

        name = _source_name(self.report_source, "reports")
        try:
            reports = await self.report_source.fetch_recent(council, None, limit)
        except Exception as exc:  # noqa: BLE001
            log.warning("{} reports unavailable for {}: {}", name, council, exc)
            raise SourcesUnavailableError(
                f"Reports unavailable for {council}",
                council=council,
                failed_sources=[f"reports:{name}"],
            ) from exc
        return list(reports)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def _fetch_reports(self, council: str, options: AggregateOptions, outcome: _FetchOutcome) -> List[ReportItem]:
        name = f"reports:{_source_name(self.report_source, 'reports')}"
        outcome.attempt(name)
        try:
            reports = await self.report_source.fetch_recent(council, None, options.max_reports)
        except Exception as exc:  # noqa: BLE001
            log.warning("{} unavailable for {}: {}", name, council, exc)
            outcome.fail(name)
            return []
        return list(reports)

    async def _fetch_news(self, council: str, options: AggregateOptions, outcome: _FetchOutcome) -> List[NewsItem]:
        wanted = options.max_news
        news: List[NewsItem] = []
        if wanted <= 0:
            return news

        if self.primary_news is not None:
            news.extend(await self._news_from(self.primary_news, council, wanted, outcome))

        if len(news) < wanted and self.secondary_news is not None:
            extra = await self._news_from(self.secondary_news, council, wanted - len(news), outcome)
            if options.include_news_summaries:
                extra = await self._summarize(extra)
            news.extend(extra)

        return news[:wanted]

    async def _news_from(self, source: NewsSource, council: str, limit: int, outcome: _FetchOutcome) -> List[NewsItem]:
        name = f"news:{_source_name(source, 'news')}"
        outcome.attempt(name)
        try:
            items = await source.fetch(council, limit)
        except Exception as exc:  # noqa: BLE001
            log.warning("{} unavailable for {}: {}", name, council, exc)
            outcome.fail(name)
            return []
        return list(items)[:limit]

    async def _fetch_updates(self, council: str, outcome: _FetchOutcome) -> List[NewsItem]:
        name = f"updates:{_source_name(self.updates_source, 'updates')}"
        outcome.attempt(name)
        try:
            closed = await self.updates_source.fetch_recently_closed(council, self.max_updates)
        except Exception as exc:  # noqa: BLE001
            log.warning("{} unavailable for {}: {}", name, council, exc)
            outcome.fail(name)
            return []
        return [update_from_report(report) for report in list(closed)[: self.max_updates]]

    async def _summarize(self, items: List[NewsItem]) -> List[NewsItem]:
        if self.summarizer is None:
            return items

        async def summarize_one(index: int, item: NewsItem) -> NewsItem:
            if index >= SUMMARY_LIMIT or not item.content:
                return item
            try:
                summary = await self.summarizer.summarize(item.title, item.content)
            except Exception as exc:  # noqa: BLE001
                log.debug("Summary failed for {}: {}", item.url, exc)
                return item
            return replace(item, ai_summary=summary) if summary else item

        return list(await asyncio.gather(*(summarize_one(i, item) for i, item in enumerate(items))))

    def _attach_departments(self, council: str, reports: List[ReportItem]) -> List[ReportItem]:
        if self.directory is None:
            return reports
        attached = []
        for report in reports:
            hint = self.directory.find_department_for_category(council, report.category or "General")
            attached.append(replace(report, department=hint) if hint else report)
        return attached


async def _empty() -> list:
    return []


__all__ = [
    "AggregateOptions",
    "SourceAggregator",
    "update_from_report",
    "MAX_UPDATES",
    "RECENT_REPORTS_LIMIT",
]
