import html
import re
import xml.etree.ElementTree as ET
from typing import List, Optional

from councildata.core.errors import SourceError
from councildata.core.fetcher import Fetcher
from councildata.models.entities import NewsItem
from councildata.sources.directory import StaticCouncilDirectory
from councildata.utils.logger import get_logger

log = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def strip_html(text: Optional[str]) -> str:
    if not text:
        return ""
    cleaned = html.unescape(_TAG_RE.sub("", text))
    return _SPACE_RE.sub(" ", cleaned).strip()


def _text(item: ET.Element, tag: str) -> str:
    node = item.find(tag)
    return node.text.strip() if node is not None and node.text else ""


def parse_feed(xml_text: str, limit: int) -> List[NewsItem]:
    """Parse RSS ``<item>`` entries into NewsItems."""
    root = ET.fromstring(xml_text)
    items: List[NewsItem] = []

    for item in root.iter("item"):
        title = strip_html(_text(item, "title"))
        link = _text(item, "link")
        if not title or not link:
            continue

        category = strip_html(_text(item, "category")) or "Council News"
        items.append(
            NewsItem(
                id=_text(item, "guid") or link,
                title=title,
                summary=strip_html(_text(item, "description")),
                date=_text(item, "pubDate"),
                url=link,
                source="rss",
                category=category,
            )
        )
        if len(items) >= limit:
            break

    return items


class RssNewsSource:
    """
    Official council news from the feed listed in the council directory.
    """

    name = "rss"

    def __init__(self, fetcher: Fetcher, directory: StaticCouncilDirectory):
        self.fetcher = fetcher
        self.directory = directory

    def feed_url(self, council: str) -> Optional[str]:
        feeds = self.directory.rss_feeds(council)
        if not feeds:
            return None
        news_feed = next((feed for feed in feeds if feed.get("type") == "news"), feeds[0])
        return news_feed["url"]

    async def fetch(self, council: str, limit: int) -> List[NewsItem]:
        url = self.feed_url(council)
        if not url:
            log.debug("No RSS feed configured for {}", council)
            return []

        xml_text = await self.fetcher.fetch_text(
            url,
            source=self.name,
            headers={"Accept": "application/rss+xml, application/xml, text/xml"},
        )
        try:
            items = parse_feed(xml_text, limit)
        except ET.ParseError as exc:
            raise SourceError(f"Malformed RSS feed at {url}: {exc}", source=self.name, council=council) from exc

        log.info("RSS feed returned {} articles for {}", len(items), council)
        return items


__all__ = ["RssNewsSource", "parse_feed", "strip_html"]
