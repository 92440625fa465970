import asyncio
from unittest.mock import AsyncMock

import pytest

from councildata.core.aggregator import AggregateOptions, SourceAggregator
from councildata.core.errors import EntityResolutionError, SourceError, SourcesUnavailableError
from councildata.models.entities import AiSummary
from councildata.sources.directory import StaticCouncilDirectory
from tests.helpers import FakeNewsSource, FakeReportSource, camden_reports, make_news, make_report

DIRECTORY_ROWS = {
    "Camden": {
        "name": "Camden Council",
        "leadership": {
            "council_leader": {"name": "Jane Leader", "role": "Leader of the Council", "email": "leader@camden.gov.uk"},
            "chief_executive": {"name": "Sam Exec", "role": "Chief Executive", "email": "ceo@camden.gov.uk"},
        },
        "departments": {
            "highways": {
                "name": "Highways",
                "head": "Pat Roads",
                "phone": "020 7974 4444",
                "email": "highways@camden.gov.uk",
                "categories": ["Potholes", "Street lighting"],
            },
            "waste": {
                "name": "Waste & Recycling",
                "head": "Lee Bins",
                "phone": "020 7974 5555",
                "email": "waste@camden.gov.uk",
                "categories": ["Rubbish (refuse and recycling)", "Fly tipping"],
            },
        },
    }
}


def build(reports=None, rss=None, newsapi=None, report_fail=False, **kwargs):
    report_source = FakeReportSource(camden_reports() if reports is None else reports, fail=report_fail)
    rss = rss if rss is not None else FakeNewsSource("rss", [make_news(i, "rss") for i in range(2)])
    newsapi = newsapi if newsapi is not None else FakeNewsSource("newsapi", [make_news(i, "newsapi") for i in range(10)])
    aggregator = SourceAggregator(
        report_source=report_source,
        primary_news=rss,
        secondary_news=newsapi,
        updates_source=report_source,
        directory=StaticCouncilDirectory(rows=DIRECTORY_ROWS),
        **kwargs,
    )
    return aggregator, report_source, rss, newsapi


def test_camden_stats_and_updates():
    aggregator, *_ = build()
    result = asyncio.run(aggregator.fetch("Camden"))

    assert result.entity_name == "Camden"
    assert (result.stats.total, result.stats.open, result.stats.fixed) == (20, 15, 5)
    assert len(result.reports) == 20
    assert len(result.updates) == 5
    update = result.updates[0]
    assert update.title == "Fixed: Report 15"
    assert update.source == "council"
    assert update.category == "Update"
    assert update.url == "https://www.fixmystreet.com/report/r15"
    assert result.departments is None


def test_news_primary_first_then_secondary_remainder():
    aggregator, _, rss, newsapi = build()
    result = asyncio.run(aggregator.fetch("Camden", AggregateOptions(max_news=5)))

    assert [item.source for item in result.news] == ["rss", "rss", "newsapi", "newsapi", "newsapi"]
    assert rss.requested == [5]
    assert newsapi.requested == [3]


def test_secondary_news_skipped_when_primary_fills_quota():
    rss = FakeNewsSource("rss", [make_news(i) for i in range(10)])
    aggregator, _, _, newsapi = build(rss=rss)
    result = asyncio.run(aggregator.fetch("Camden", AggregateOptions(max_news=4)))

    assert len(result.news) == 4
    assert newsapi.requested == []


def test_one_failing_source_contributes_nothing():
    aggregator, *_ = build(report_fail=True)
    result = asyncio.run(aggregator.fetch("Camden"))

    assert result.reports == []
    assert result.updates == []
    assert result.stats.total == 0
    assert len(result.news) == 10


def test_failing_primary_news_falls_back_to_secondary():
    aggregator, *_ = build(rss=FakeNewsSource("rss", fail=True))
    result = asyncio.run(aggregator.fetch("Camden", AggregateOptions(max_news=3)))

    assert [item.source for item in result.news] == ["newsapi"] * 3
    assert len(result.reports) == 20


def test_every_source_failing_raises():
    aggregator, *_ = build(
        report_fail=True,
        rss=FakeNewsSource("rss", fail=True),
        newsapi=FakeNewsSource("newsapi", fail=True),
    )
    with pytest.raises(SourcesUnavailableError) as excinfo:
        asyncio.run(aggregator.fetch("Camden"))

    assert set(excinfo.value.failed_sources) == {
        "reports:fixmystreet",
        "updates:fixmystreet",
        "news:rss",
        "news:newsapi",
    }


def test_unsupported_council_gets_news_only():
    aggregator, report_source, *_ = build()
    result = asyncio.run(aggregator.fetch("Leeds"))

    assert result.reports == []
    assert result.updates == []
    assert len(result.news) == 10
    assert report_source.calls == 0


def test_nothing_requested_gives_empty_result():
    aggregator, *_ = build()
    options = AggregateOptions(include_reports=False, include_news=False, include_updates=False)
    result = asyncio.run(aggregator.fetch("Camden", options))

    assert result.reports == [] and result.news == [] and result.updates == []


def test_blank_council_rejected():
    aggregator, *_ = build()
    with pytest.raises(EntityResolutionError):
        asyncio.run(aggregator.fetch("  "))


def test_departments_and_report_hints():
    reports = [make_report(1, category="Fly tipping"), make_report(2, category="Graffiti")]
    aggregator, *_ = build(reports=reports)
    options = AggregateOptions(include_departments=True, include_report_departments=True)
    result = asyncio.run(aggregator.fetch("Camden", options))

    assert result.departments.leader.name == "Jane Leader"
    assert len(result.departments.key_departments) == 2
    assert result.reports[0].department.name == "Waste & Recycling"
    # Unmapped categories fall back to highways.
    assert result.reports[1].department.name == "Highways"


def test_news_summaries_only_for_first_three_with_content():
    items = [make_news(i, "newsapi", content=None if i == 1 else f"body {i}") for i in range(5)]
    summarizer = AsyncMock()
    summarizer.summarize = AsyncMock(return_value=AiSummary(summary="short", key_points=["a"]))
    aggregator, *_ = build(
        rss=FakeNewsSource("rss"),
        newsapi=FakeNewsSource("newsapi", items),
        summarizer=summarizer,
    )
    result = asyncio.run(aggregator.fetch("Camden", AggregateOptions(max_news=5, include_news_summaries=True)))

    summarized = [item.ai_summary is not None for item in result.news]
    assert summarized == [True, False, True, False, False]
    assert summarizer.summarize.await_count == 2


def test_fetch_recent_reports_is_unfiltered():
    aggregator, *_ = build()
    reports = asyncio.run(aggregator.fetch_recent_reports("Camden"))
    assert len(reports) == 20
    assert {report.status for report in reports} == {"open", "fixed"}


def test_fetch_recent_reports_failure_raises():
    aggregator, *_ = build(report_fail=True)
    with pytest.raises(SourcesUnavailableError) as excinfo:
        asyncio.run(aggregator.fetch_recent_reports("Camden"))
    assert isinstance(excinfo.value.__cause__, SourceError)
