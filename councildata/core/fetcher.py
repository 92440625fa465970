"""
HTTP Fetcher
============

Shared async HTTP client for the upstream council sources:
- Async requests via httpx
- Retries with exponential backoff on transport errors (tenacity)
- Timeout management
- Errors mapped onto SourceError
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from councildata.core.errors import SourceError
from councildata.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_HEADERS = {"User-Agent": "councildata/0.1 (+https://www.fixmystreet.com)"}


class Fetcher:
    """Thin wrapper around one ``httpx.AsyncClient``."""

    def __init__(
        self,
        timeout: float = 15.0,
        max_retries: int = 3,
        client: Optional[httpx.AsyncClient] = None,
        backoff_seconds: float = 1.0,
    ):
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
        )
        log.debug("Fetcher initialized, timeout={}s, max_retries={}", timeout, self.max_retries)

    async def close(self):
        """Close the underlying HTTP client"""
        await self.client.aclose()

    async def _do_fetch(self, url: str, source: str, **kwargs) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    log.debug("Attempt {}/{} fetching {}", attempt.retry_state.attempt_number, self.max_retries, url)
                    response = await self.client.get(url, **kwargs)
        except httpx.TransportError as exc:
            raise SourceError(f"Request to {url} failed: {exc}", source=source) from exc

        if response.status_code != 200:
            raise SourceError(
                f"{source} returned {response.status_code} for {url}",
                source=source,
                status_code=response.status_code,
            )
        return response

    async def fetch_text(self, url: str, *, source: str = "http", **kwargs) -> str:
        response = await self._do_fetch(url, source, **kwargs)
        return response.text

    async def fetch_json(self, url: str, *, source: str = "http", **kwargs) -> Dict[str, Any]:
        response = await self._do_fetch(url, source, **kwargs)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceError(f"{source} returned invalid JSON for {url}", source=source) from exc
        if not isinstance(payload, dict):
            raise SourceError(f"{source} returned unexpected JSON for {url}", source=source)
        return payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


__all__ = ["Fetcher"]
