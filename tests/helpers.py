import asyncio
from typing import List, Optional

from councildata.core.errors import SourceError
from councildata.models.entities import NewsItem, ReportItem

HOUR_MS = 60 * 60 * 1000
START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_report(index: int, status: str = "open", category: str = "Potholes") -> ReportItem:
    return ReportItem(
        id=f"r{index}",
        title=f"Report {index}",
        description=f"Description {index}",
        category=category,
        status=status,
        date="2024-05-01T10:00:00Z",
        source="fixmystreet",
    )


def make_news(index: int, source: str = "rss", content: Optional[str] = None) -> NewsItem:
    return NewsItem(
        id=f"{source}-{index}",
        title=f"{source} story {index}",
        summary="summary",
        date="2024-05-01",
        url=f"https://example.com/{source}/{index}",
        source=source,
        category="Council News",
        content=content,
    )


def camden_reports() -> List[ReportItem]:
    return [make_report(i, "open") for i in range(15)] + [make_report(15 + i, "fixed") for i in range(5)]


class FakeReportSource:
    name = "fixmystreet"

    def __init__(self, reports=None, councils=("Camden",), fail: bool = False):
        self.reports = list(reports or [])
        self.councils = set(councils)
        self.fail = fail
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None

    def supports(self, council: str) -> bool:
        return council in self.councils

    async def fetch_recent(self, council, status=None, limit=10):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise SourceError("reports down", source=self.name, council=council)
        return self.reports[:limit]

    async def fetch_recently_closed(self, council, limit):
        if self.fail:
            raise SourceError("reports down", source=self.name, council=council)
        return [report for report in self.reports if report.is_fixed][:limit]


class FakeNewsSource:
    def __init__(self, name: str, items=None, fail: bool = False):
        self.name = name
        self.items = list(items or [])
        self.fail = fail
        self.requested: List[int] = []

    async def fetch(self, council, limit):
        self.requested.append(limit)
        if self.fail:
            raise SourceError(f"{self.name} down", source=self.name, council=council)
        return self.items[:limit]
