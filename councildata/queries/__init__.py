from .base import CacheQuery, QueryResult
from .council_data import CouncilDataQuery
from .recent_reports import RecentReportsQuery, filter_reports

__all__ = ["CacheQuery", "QueryResult", "CouncilDataQuery", "RecentReportsQuery", "filter_reports"]
