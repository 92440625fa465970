"""Per-council data cache and multi-source aggregation."""

from councildata.core.aggregator import AggregateOptions, SourceAggregator
from councildata.core.cache_store import EntityCacheStore
from councildata.core.freshness import FreshnessPolicy
from councildata.queries import CouncilDataQuery, QueryResult, RecentReportsQuery
from councildata.refresh import AppStateMonitor, RefreshScheduler
from councildata.service import CouncilDataService, create_service

__version__ = "0.1.0"

__all__ = [
    "AggregateOptions",
    "AppStateMonitor",
    "CouncilDataQuery",
    "CouncilDataService",
    "EntityCacheStore",
    "FreshnessPolicy",
    "QueryResult",
    "RecentReportsQuery",
    "RefreshScheduler",
    "SourceAggregator",
    "create_service",
]
