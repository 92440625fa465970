"""Contracts for the upstream collaborators the aggregator depends on."""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from councildata.models.entities import (
    AiSummary,
    DepartmentDirectory,
    DepartmentHint,
    NewsItem,
    ReportItem,
)


@runtime_checkable
class ReportSource(Protocol):
    """Issue reports for the councils it supports. Fetches may raise."""

    name: str

    def supports(self, council: str) -> bool: ...

    async def fetch_recent(self, council: str, status: Optional[str] = None, limit: int = 10) -> List[ReportItem]: ...


@runtime_checkable
class NewsSource(Protocol):
    name: str

    async def fetch(self, council: str, limit: int) -> List[NewsItem]: ...


@runtime_checkable
class UpdatesSource(Protocol):
    """Recently closed or fixed reports."""

    name: str

    def supports(self, council: str) -> bool: ...

    async def fetch_recently_closed(self, council: str, limit: int) -> List[ReportItem]: ...


@runtime_checkable
class DepartmentLookup(Protocol):
    """Local, synchronous council directory. Never raises."""

    def lookup(self, council: str) -> Optional[DepartmentDirectory]: ...

    def find_department_for_category(self, council: str, category: str) -> Optional[DepartmentHint]: ...


@runtime_checkable
class Summarizer(Protocol):
    async def summarize(self, title: str, content: str) -> Optional[AiSummary]: ...


__all__ = [
    "ReportSource",
    "NewsSource",
    "UpdatesSource",
    "DepartmentLookup",
    "Summarizer",
]
