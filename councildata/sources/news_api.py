"""NewsAPI search source, used to top up council news."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from councildata.core.errors import SourceError
from councildata.core.fetcher import Fetcher
from councildata.models.entities import NewsItem
from councildata.utils.logger import get_logger

log = get_logger(__name__)

NEWS_API_URL = "https://newsapi.org/v2/everything"
LOOKBACK_DAYS = 29  # free tier only searches the last 30 days

IRRELEVANT_KEYWORDS = (
    "cryptocurrency",
    "crypto",
    "bitcoin",
    "ethereum",
    "blockchain",
    "stock price",
    "share price",
    "shareholding",
    "pdmr",
    "restaurant review",
    "nobu",
    "michelin star",
    "ice cream company",
)


def is_relevant(article: Mapping[str, Any], council: str) -> bool:
    """Article must mention the council and not look like market/crypto spam."""
    text = f"{article.get('title') or ''} {article.get('description') or ''}".lower()
    source_name = str((article.get("source") or {}).get("name") or "").lower()
    council_lower = council.lower()

    if council_lower not in text and council_lower not in source_name:
        return False

    hits = sum(1 for keyword in IRRELEVANT_KEYWORDS if keyword in text)
    return hits < 2


def to_news_item(article: Mapping[str, Any]) -> NewsItem:
    url = str(article.get("url") or "")
    return NewsItem(
        id=url,
        title=str(article.get("title") or ""),
        summary=str(article.get("description") or ""),
        date=str(article.get("publishedAt") or ""),
        url=url,
        source="newsapi",
        image_url=article.get("urlToImage") or None,
        category="News",
        content=article.get("content") or None,
    )


class NewsApiSource:
    name = "newsapi"

    def __init__(self, fetcher: Fetcher, api_key: Optional[str]):
        self.fetcher = fetcher
        self.api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _params(self, council: str, limit: int, now: datetime) -> Dict[str, str]:
        return {
            "apiKey": self.api_key or "",
            "q": f'"{council}" OR "{council} Council"',
            "language": "en",
            "sortBy": "publishedAt",
            # Fetch extra so the relevance filter still leaves enough.
            "pageSize": str(min(limit * 3, 30)),
            "from": (now - timedelta(days=LOOKBACK_DAYS)).date().isoformat(),
        }

    async def fetch(self, council: str, limit: int, *, now: Optional[datetime] = None) -> List[NewsItem]:
        if limit <= 0:
            return []
        if not self.configured:
            log.debug("NEWS_API_KEY not set, skipping NewsAPI for {}", council)
            return []

        now = now or datetime.now(timezone.utc)
        payload = await self.fetcher.fetch_json(NEWS_API_URL, source=self.name, params=self._params(council, limit, now))
        if payload.get("status") != "ok":
            raise SourceError(
                f"NewsAPI returned status {payload.get('status')!r}",
                source=self.name,
                council=council,
                details={"code": payload.get("code")},
            )

        articles = [item for item in payload.get("articles") or [] if isinstance(item, Mapping)]
        relevant = [to_news_item(article) for article in articles if is_relevant(article, council)]
        log.info("NewsAPI returned {} articles for {} ({} relevant)", len(articles), council, len(relevant))
        return relevant[:limit]


__all__ = ["NewsApiSource", "is_relevant", "to_news_item", "IRRELEVANT_KEYWORDS"]
