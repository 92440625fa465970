from __future__ import annotations

from typing import List, Optional

from councildata.core.aggregator import RECENT_REPORTS_LIMIT, SourceAggregator
from councildata.core.cache_store import EntityCacheStore
from councildata.models.entities import KIND_RECENT_ITEMS, ReportItem
from councildata.queries.base import CacheQuery

ALL_STATUSES = "all"


def filter_reports(reports: List[ReportItem], status: Optional[str] = None, limit: Optional[int] = None) -> List[ReportItem]:
    """Status filter (case-insensitive, ``None``/``"all"`` keeps everything) then truncation."""
    wanted = (status or "").strip().lower()
    if wanted and wanted != ALL_STATUSES:
        reports = [report for report in reports if report.status == wanted]
    else:
        reports = list(reports)
    if limit is not None:
        reports = reports[: max(limit, 0)]
    return reports


class RecentReportsQuery(CacheQuery[List[ReportItem]]):
    """Recent reports for one council, filtered on read.

    Filtering never touches the cached list and never triggers a refetch.
    """

    kind = KIND_RECENT_ITEMS
    error_message = "Failed to load reports. Please try again."

    def __init__(
        self,
        store: EntityCacheStore,
        aggregator: SourceAggregator,
        key: str,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        *,
        fetch_limit: int = RECENT_REPORTS_LIMIT,
    ) -> None:
        super().__init__(store, key)
        self.aggregator = aggregator
        self.status = status
        self.limit = limit
        self.fetch_limit = fetch_limit

    async def load(self) -> List[ReportItem]:
        return await self.aggregator.fetch_recent_reports(self.key, self.fetch_limit)

    def present(self, data: List[ReportItem]) -> List[ReportItem]:
        return filter_reports(data, self.status, self.limit)

    def empty(self) -> List[ReportItem]:
        return []


__all__ = ["RecentReportsQuery", "filter_reports"]
