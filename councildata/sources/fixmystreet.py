"""
FixMyStreet Open311 source for council issue reports and recent fixes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from councildata.core.fetcher import Fetcher
from councildata.models.entities import Location, ReportItem
from councildata.sources.directory import normalise_council_name
from councildata.utils.logger import get_logger

log = get_logger(__name__)

# Councils running their own FixMyStreet instance.
COUNCIL_CONFIG: Dict[str, Dict[str, str]] = {
    "Camden": {"subdomain": "camden"},
    "Westminster": {"subdomain": "westminster"},
    "Islington": {"subdomain": "islington"},
    "Hackney": {"subdomain": "hackney"},
    "Bromley": {"subdomain": "bromley", "custom_domain": "fix.bromley.gov.uk"},
    "Southwark": {"subdomain": "southwark", "custom_domain": "report.southwark.gov.uk"},
    "Buckinghamshire": {"subdomain": "buckinghamshire", "custom_domain": "fixmystreet.buckinghamshire.gov.uk"},
    "Oxfordshire": {"subdomain": "oxfordshire", "custom_domain": "fixmystreet.oxfordshire.gov.uk"},
    "West Northamptonshire": {"subdomain": "westnorthants", "custom_domain": "fix.westnorthants.gov.uk"},
}


def _parse_iso8601(value: Optional[str]) -> datetime:
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_location(raw: Mapping[str, Any]) -> Optional[Location]:
    try:
        return Location(lat=float(raw["lat"]), lon=float(raw["long"]))
    except (KeyError, TypeError, ValueError):
        return None


def to_report_item(raw: Mapping[str, Any], *, date_field: str = "requested_datetime") -> ReportItem:
    """Map one Open311 service request onto a ReportItem."""
    return ReportItem(
        id=str(raw.get("service_request_id", "")),
        title=str(raw.get("title") or raw.get("service_name") or "Untitled report"),
        description=str(raw.get("detail") or raw.get("description") or ""),
        category=str(raw.get("service_name") or "General"),
        status=str(raw.get("status", "open")),
        date=str(raw.get(date_field) or raw.get("requested_datetime") or ""),
        source="fixmystreet",
        location=_to_location(raw),
    )


class FixMyStreetSource:
    """Reports and recently closed reports from a council's Open311 endpoint."""

    name = "fixmystreet"

    def __init__(self, fetcher: Fetcher, councils: Optional[Mapping[str, Mapping[str, str]]] = None):
        self.fetcher = fetcher
        self.councils = dict(councils or COUNCIL_CONFIG)

    def supports(self, council: str) -> bool:
        return normalise_council_name(council) in self.councils

    def base_url(self, council: str) -> str:
        config = self.councils[normalise_council_name(council)]
        if config.get("custom_domain"):
            return f"https://{config['custom_domain']}"
        return f"https://fixmystreet.{config['subdomain']}.gov.uk"

    def _requests_url(self, council: str) -> str:
        return f"{self.base_url(council)}/open311/v2/requests.json"

    async def _service_requests(self, council: str, status: Optional[str]) -> List[Dict[str, Any]]:
        params = {"jurisdiction_id": self.councils[normalise_council_name(council)]["subdomain"]}
        if status:
            params["status"] = status
        payload = await self.fetcher.fetch_json(
            self._requests_url(council),
            source=self.name,
            params=params,
            headers={"Accept": "application/json"},
        )
        requests = payload.get("service_requests") or []
        return [item for item in requests if isinstance(item, Mapping)]

    async def fetch_recent(self, council: str, status: Optional[str] = None, limit: int = 10) -> List[ReportItem]:
        if not self.supports(council):
            log.debug("No FixMyStreet instance for {}", council)
            return []

        raw_reports = await self._service_requests(council, status)
        log.info("FixMyStreet returned {} reports for {}", len(raw_reports), council)
        return [to_report_item(raw) for raw in raw_reports[:limit]]

    async def fetch_recently_closed(self, council: str, limit: int) -> List[ReportItem]:
        if not self.supports(council):
            return []

        raw_reports = await self._service_requests(council, "closed")
        raw_reports.sort(key=lambda raw: _parse_iso8601(raw.get("updated_datetime")), reverse=True)
        return [to_report_item(raw, date_field="updated_datetime") for raw in raw_reports[:limit]]


__all__ = ["FixMyStreetSource", "COUNCIL_CONFIG", "to_report_item"]
