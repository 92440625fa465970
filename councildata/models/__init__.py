"""Model exports for cached council data."""

from .entities import (
    CACHE_KINDS,
    KIND_AGGREGATE,
    KIND_RECENT_ITEMS,
    AggregateResult,
    AiSummary,
    CacheEntry,
    Contact,
    DepartmentDirectory,
    DepartmentHint,
    DepartmentInfo,
    EntityCache,
    Location,
    NewsItem,
    ReportItem,
    ReportStats,
)

__all__ = [
    "CACHE_KINDS",
    "KIND_AGGREGATE",
    "KIND_RECENT_ITEMS",
    "AggregateResult",
    "AiSummary",
    "CacheEntry",
    "Contact",
    "DepartmentDirectory",
    "DepartmentHint",
    "DepartmentInfo",
    "EntityCache",
    "Location",
    "NewsItem",
    "ReportItem",
    "ReportStats",
]
