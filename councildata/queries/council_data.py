from __future__ import annotations

from typing import Optional

from councildata.core.aggregator import AggregateOptions, SourceAggregator
from councildata.core.cache_store import EntityCacheStore
from councildata.models.entities import KIND_AGGREGATE, AggregateResult
from councildata.queries.base import CacheQuery


class CouncilDataQuery(CacheQuery[AggregateResult]):
    """Aggregated reports, news and updates for one council."""

    kind = KIND_AGGREGATE
    error_message = "Failed to load data. Please try again."

    def __init__(
        self,
        store: EntityCacheStore,
        aggregator: SourceAggregator,
        key: str,
        options: Optional[AggregateOptions] = None,
    ) -> None:
        super().__init__(store, key)
        self.aggregator = aggregator
        self.options = options or AggregateOptions()

    async def load(self) -> AggregateResult:
        return await self.aggregator.fetch(self.key, self.options)


__all__ = ["CouncilDataQuery"]
