import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from councildata.core.errors import SourceError
from councildata.core.fetcher import Fetcher
from councildata.sources import (
    FixMyStreetSource,
    NewsApiSource,
    RssNewsSource,
    StaticCouncilDirectory,
    normalise_council_name,
)
from councildata.sources.news_api import is_relevant
from councildata.sources.rss_feed import parse_feed, strip_html

OPEN311_PAYLOAD = {
    "service_requests": [
        {
            "service_request_id": 101,
            "title": "Pothole on High Street",
            "detail": "Deep pothole",
            "service_name": "Potholes",
            "status": "open",
            "requested_datetime": "2024-05-01T09:00:00Z",
            "updated_datetime": "2024-05-02T09:00:00Z",
            "lat": "51.55",
            "long": "-0.14",
        },
        {
            "service_request_id": 102,
            "title": "Broken light",
            "service_name": "Street lighting",
            "status": "closed",
            "requested_datetime": "2024-04-01T09:00:00Z",
            "updated_datetime": "2024-05-03T09:00:00Z",
        },
        {
            "service_request_id": 103,
            "title": "Fly tip",
            "service_name": "Fly tipping",
            "status": "closed",
            "requested_datetime": "2024-04-02T09:00:00Z",
            "updated_datetime": "2024-04-20T09:00:00Z",
        },
    ]
}

RSS_FEED = """<?xml version="1.0"?>
<rss version="2.0"><channel>
  <item>
    <title>New &lt;b&gt;library&lt;/b&gt; opens</title>
    <link>https://news.camden.gov.uk/library</link>
    <description>&lt;p&gt;The new   library&lt;/p&gt;</description>
    <pubDate>Wed, 01 May 2024 10:00:00 GMT</pubDate>
    <guid>lib-1</guid>
    <category>Community</category>
  </item>
  <item>
    <title>Bin collection changes</title>
    <link>https://news.camden.gov.uk/bins</link>
  </item>
  <item>
    <title>No link here</title>
  </item>
</channel></rss>"""


def make_fetcher(handler) -> Fetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Fetcher(client=client, max_retries=1, backoff_seconds=0)


def run_with(fetcher, coro_factory):
    async def scenario():
        async with fetcher:
            return await coro_factory()

    return asyncio.run(scenario())


def test_normalise_council_name():
    assert normalise_council_name("Camden Council") == "Camden"
    assert normalise_council_name("London Borough of Islington") == "Islington"
    assert normalise_council_name("City of Westminster") == "Westminster"


def test_fixmystreet_recent_reports():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json=OPEN311_PAYLOAD)

    fetcher = make_fetcher(handler)
    source = FixMyStreetSource(fetcher)
    reports = run_with(fetcher, lambda: source.fetch_recent("Camden Council", limit=2))

    assert [report.id for report in reports] == ["101", "102"]
    assert reports[0].location.lat == pytest.approx(51.55)
    assert reports[0].category == "Potholes"
    assert reports[1].status == "closed"
    assert seen[0].host == "fixmystreet.camden.gov.uk"
    assert seen[0].path == "/open311/v2/requests.json"
    assert seen[0].params["jurisdiction_id"] == "camden"


def test_fixmystreet_custom_domain_and_closed_sorting():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json=OPEN311_PAYLOAD)

    fetcher = make_fetcher(handler)
    source = FixMyStreetSource(fetcher)
    closed = run_with(fetcher, lambda: source.fetch_recently_closed("Bromley", 2))

    assert seen[0].host == "fix.bromley.gov.uk"
    assert seen[0].params["status"] == "closed"
    assert [report.id for report in closed] == ["102", "101"]
    assert closed[0].date == "2024-05-03T09:00:00Z"


def test_fixmystreet_unsupported_council_skips_network():
    def handler(request):
        raise AssertionError("no request expected")

    fetcher = make_fetcher(handler)
    source = FixMyStreetSource(fetcher)
    assert not source.supports("Leeds")
    assert run_with(fetcher, lambda: source.fetch_recent("Leeds")) == []


def test_fixmystreet_http_error_becomes_source_error():
    fetcher = make_fetcher(lambda request: httpx.Response(503))
    source = FixMyStreetSource(fetcher)

    with pytest.raises(SourceError) as excinfo:
        run_with(fetcher, lambda: source.fetch_recent("Camden"))
    assert excinfo.value.status_code == 503


def test_parse_feed_strips_html_and_skips_incomplete_items():
    items = parse_feed(RSS_FEED, limit=10)

    assert [item.title for item in items] == ["New library opens", "Bin collection changes"]
    assert items[0].id == "lib-1"
    assert items[0].summary == "The new library"
    assert items[0].category == "Community"
    assert items[1].id == "https://news.camden.gov.uk/bins"
    assert items[1].category == "Council News"
    assert strip_html(None) == ""


def test_rss_source_uses_directory_feed():
    directory = StaticCouncilDirectory(
        rows={"Camden": {"rss_feeds": [{"url": "https://example.com/events", "type": "events"},
                                       {"url": "https://example.com/news", "type": "news"}]}}
    )
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text=RSS_FEED)

    fetcher = make_fetcher(handler)
    source = RssNewsSource(fetcher, directory)
    items = run_with(fetcher, lambda: source.fetch("Camden", 1))

    assert seen == ["https://example.com/news"]
    assert len(items) == 1
    assert run_with(make_fetcher(handler), lambda: source.fetch("Leeds", 5)) == []


def test_rss_source_malformed_feed():
    directory = StaticCouncilDirectory(rows={"Camden": {"rss_feeds": [{"url": "https://example.com/news"}]}})
    fetcher = make_fetcher(lambda request: httpx.Response(200, text="<rss><channel>"))
    source = RssNewsSource(fetcher, directory)

    with pytest.raises(SourceError):
        run_with(fetcher, lambda: source.fetch("Camden", 5))


def test_news_api_filters_irrelevant_articles():
    payload = {
        "status": "ok",
        "articles": [
            {"title": "Camden opens new park", "description": "", "url": "https://a", "publishedAt": "2024-05-01",
             "content": "Full story"},
            {"title": "Camden crypto bitcoin rally", "description": "", "url": "https://b"},
            {"title": "Leeds news", "description": "", "url": "https://c"},
        ],
    }
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json=payload)

    fetcher = make_fetcher(handler)
    source = NewsApiSource(fetcher, "secret")
    now = datetime(2024, 5, 30, tzinfo=timezone.utc)
    items = run_with(fetcher, lambda: source.fetch("Camden", 5, now=now))

    assert [item.url for item in items] == ["https://a"]
    assert items[0].source == "newsapi"
    assert items[0].content == "Full story"
    assert seen[0].params["from"] == "2024-05-01"
    assert seen[0].params["apiKey"] == "secret"


def test_news_api_without_key_returns_nothing():
    def handler(request):
        raise AssertionError("no request expected")

    fetcher = make_fetcher(handler)
    assert run_with(fetcher, lambda: NewsApiSource(fetcher, None).fetch("Camden", 5)) == []


def test_news_api_error_status():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=json.dumps({"status": "error", "code": "rateLimited"})))

    with pytest.raises(SourceError) as excinfo:
        run_with(fetcher, lambda: NewsApiSource(fetcher, "secret").fetch("Camden", 5))
    assert excinfo.value.details["code"] == "rateLimited"


def test_is_relevant_checks_source_name():
    article = {"title": "Park reopens", "description": "", "source": {"name": "Camden New Journal"}}
    assert is_relevant(article, "Camden")


def test_directory_file_lists_known_councils():
    directory = StaticCouncilDirectory()
    assert {"Camden", "Westminster", "Islington"} <= set(directory.councils())
    assert directory.has_council("Camden Council")
    assert directory.lookup("Camden").leader.name
    assert directory.lookup("Leeds") is None
