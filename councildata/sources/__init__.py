"""Upstream collaborators: contracts and concrete adapters."""

from .base import DepartmentLookup, NewsSource, ReportSource, Summarizer, UpdatesSource
from .directory import StaticCouncilDirectory, normalise_council_name
from .fixmystreet import FixMyStreetSource
from .news_api import NewsApiSource
from .rss_feed import RssNewsSource

__all__ = [
    "DepartmentLookup",
    "NewsSource",
    "ReportSource",
    "Summarizer",
    "UpdatesSource",
    "StaticCouncilDirectory",
    "normalise_council_name",
    "FixMyStreetSource",
    "NewsApiSource",
    "RssNewsSource",
]
