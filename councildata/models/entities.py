"""Domain models for cached council data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

T = TypeVar("T")

REPORT_STATUSES = ("open", "investigating", "planned", "fixed", "closed")
OPEN_STATUSES = frozenset({"open", "investigating"})
FIXED_STATUSES = frozenset({"fixed", "closed"})

KIND_AGGREGATE = "aggregate"
KIND_RECENT_ITEMS = "recent_items"
CACHE_KINDS = (KIND_AGGREGATE, KIND_RECENT_ITEMS)


def _normalise_status(value: Any) -> str:
    status = str(value or "open").strip().lower()
    if status not in REPORT_STATUSES:
        return "open"
    return status


@dataclass(slots=True, frozen=True)
class Location:
    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> Optional["Location"]:
        if not payload:
            return None
        try:
            return cls(lat=float(payload["lat"]), lon=float(payload["lon"]))
        except (KeyError, TypeError, ValueError):
            return None


@dataclass(slots=True, frozen=True)
class DepartmentHint:
    """Department a report would most likely be routed to."""

    name: str
    contact: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "contact": self.contact, "reason": self.reason}

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> Optional["DepartmentHint"]:
        if not payload:
            return None
        return cls(
            name=str(payload.get("name", "")),
            contact=str(payload.get("contact", "")),
            reason=str(payload.get("reason", "")),
        )


@dataclass(slots=True, frozen=True)
class ReportItem:
    """A single issue report raised against a council."""

    id: str
    title: str
    description: str
    category: str
    status: str
    date: str
    source: str
    location: Optional[Location] = None
    department: Optional[DepartmentHint] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _normalise_status(self.status))

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def is_fixed(self) -> bool:
        return self.status in FIXED_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "status": self.status,
            "date": self.date,
            "source": self.source,
        }
        if self.location is not None:
            payload["location"] = self.location.to_dict()
        if self.department is not None:
            payload["department"] = self.department.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ReportItem":
        return cls(
            id=str(payload.get("id", "")),
            title=str(payload.get("title", "")),
            description=str(payload.get("description", "") or ""),
            category=str(payload.get("category", "General") or "General"),
            status=str(payload.get("status", "open")),
            date=str(payload.get("date", "") or ""),
            source=str(payload.get("source", "unknown")),
            location=Location.from_dict(payload.get("location")),
            department=DepartmentHint.from_dict(payload.get("department")),
        )


@dataclass(slots=True, frozen=True)
class AiSummary:
    summary: str
    key_points: List[str] = field(default_factory=list)
    sentiment: str = "neutral"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "key_points": list(self.key_points),
            "sentiment": self.sentiment,
        }

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> Optional["AiSummary"]:
        if not payload:
            return None
        return cls(
            summary=str(payload.get("summary", "")),
            key_points=[str(point) for point in payload.get("key_points", []) or []],
            sentiment=str(payload.get("sentiment", "neutral")),
        )


@dataclass(slots=True, frozen=True)
class NewsItem:
    """A news article or council update."""

    id: str
    title: str
    summary: str
    date: str
    url: str
    source: str
    image_url: Optional[str] = None
    category: Optional[str] = None
    ai_summary: Optional[AiSummary] = None
    content: Optional[str] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "date": self.date,
            "url": self.url,
            "source": self.source,
        }
        if self.image_url:
            payload["image_url"] = self.image_url
        if self.category:
            payload["category"] = self.category
        if self.ai_summary is not None:
            payload["ai_summary"] = self.ai_summary.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NewsItem":
        return cls(
            id=str(payload.get("id", "")),
            title=str(payload.get("title", "")),
            summary=str(payload.get("summary", "") or ""),
            date=str(payload.get("date", "") or ""),
            url=str(payload.get("url", "")),
            source=str(payload.get("source", "unknown")),
            image_url=payload.get("image_url"),
            category=payload.get("category"),
            ai_summary=AiSummary.from_dict(payload.get("ai_summary")),
        )


@dataclass(slots=True, frozen=True)
class ReportStats:
    total: int = 0
    open: int = 0
    fixed: int = 0

    @classmethod
    def from_reports(cls, reports: List[ReportItem]) -> "ReportStats":
        return cls(
            total=len(reports),
            open=sum(1 for report in reports if report.is_open),
            fixed=sum(1 for report in reports if report.is_fixed),
        )

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "open": self.open, "fixed": self.fixed}

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "ReportStats":
        payload = payload or {}
        return cls(
            total=int(payload.get("total", 0) or 0),
            open=int(payload.get("open", 0) or 0),
            fixed=int(payload.get("fixed", 0) or 0),
        )


@dataclass(slots=True, frozen=True)
class Contact:
    name: str
    role: str
    contact: str
    party: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {"name": self.name, "role": self.role, "contact": self.contact}
        if self.party:
            payload["party"] = self.party
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Contact":
        return cls(
            name=str(payload.get("name", "")),
            role=str(payload.get("role", "")),
            contact=str(payload.get("contact", "")),
            party=payload.get("party"),
        )


@dataclass(slots=True, frozen=True)
class DepartmentInfo:
    name: str
    head: str
    contact: str
    responsibilities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "head": self.head,
            "contact": self.contact,
            "responsibilities": list(self.responsibilities),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DepartmentInfo":
        return cls(
            name=str(payload.get("name", "")),
            head=str(payload.get("head", "")),
            contact=str(payload.get("contact", "")),
            responsibilities=[str(item) for item in payload.get("responsibilities", []) or []],
        )


@dataclass(slots=True, frozen=True)
class DepartmentDirectory:
    """Leadership and department contacts for one council."""

    council_name: str
    leader: Contact
    chief_executive: Contact
    key_departments: List[DepartmentInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "council_name": self.council_name,
            "leader": self.leader.to_dict(),
            "chief_executive": self.chief_executive.to_dict(),
            "key_departments": [dept.to_dict() for dept in self.key_departments],
        }

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> Optional["DepartmentDirectory"]:
        if not payload:
            return None
        return cls(
            council_name=str(payload.get("council_name", "")),
            leader=Contact.from_dict(payload.get("leader") or {}),
            chief_executive=Contact.from_dict(payload.get("chief_executive") or {}),
            key_departments=[
                DepartmentInfo.from_dict(item) for item in payload.get("key_departments", []) or []
            ],
        )


@dataclass(slots=True, frozen=True)
class AggregateResult:
    """Merged reports, news, updates and directory snapshot for one council."""

    entity_name: str
    reports: List[ReportItem] = field(default_factory=list)
    news: List[NewsItem] = field(default_factory=list)
    updates: List[NewsItem] = field(default_factory=list)
    stats: ReportStats = field(default_factory=ReportStats)
    departments: Optional[DepartmentDirectory] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "entity_name": self.entity_name,
            "reports": [report.to_dict() for report in self.reports],
            "news": [item.to_dict() for item in self.news],
            "updates": [item.to_dict() for item in self.updates],
            "stats": self.stats.to_dict(),
        }
        if self.departments is not None:
            payload["departments"] = self.departments.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AggregateResult":
        return cls(
            entity_name=str(payload.get("entity_name", "")),
            reports=[ReportItem.from_dict(item) for item in payload.get("reports", []) or []],
            news=[NewsItem.from_dict(item) for item in payload.get("news", []) or []],
            updates=[NewsItem.from_dict(item) for item in payload.get("updates", []) or []],
            stats=ReportStats.from_dict(payload.get("stats")),
            departments=DepartmentDirectory.from_dict(payload.get("departments")),
        )


@dataclass(slots=True, frozen=True)
class CacheEntry(Generic[T]):
    """Cached value and the epoch-millis time it was fetched."""

    data: T
    timestamp: int


@dataclass(slots=True)
class EntityCache:
    aggregate: Optional[CacheEntry[AggregateResult]] = None
    recent_items: Optional[CacheEntry[List[ReportItem]]] = None

    def entry(self, kind: str) -> Optional[CacheEntry[Any]]:
        if kind == KIND_AGGREGATE:
            return self.aggregate
        if kind == KIND_RECENT_ITEMS:
            return self.recent_items
        raise ValueError(f"unknown cache kind: {kind}")

    def replace(self, kind: str, entry: Optional[CacheEntry[Any]]) -> None:
        if kind == KIND_AGGREGATE:
            self.aggregate = entry
        elif kind == KIND_RECENT_ITEMS:
            self.recent_items = entry
        else:
            raise ValueError(f"unknown cache kind: {kind}")

    @property
    def is_empty(self) -> bool:
        return self.aggregate is None and self.recent_items is None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"aggregate": None, "recent_items": None}
        if self.aggregate is not None:
            payload["aggregate"] = {
                "data": self.aggregate.data.to_dict(),
                "timestamp": int(self.aggregate.timestamp),
            }
        if self.recent_items is not None:
            payload["recent_items"] = {
                "data": [report.to_dict() for report in self.recent_items.data],
                "timestamp": int(self.recent_items.timestamp),
            }
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EntityCache":
        aggregate_raw = payload.get("aggregate")
        recent_raw = payload.get("recent_items")

        aggregate: Optional[CacheEntry[AggregateResult]] = None
        if isinstance(aggregate_raw, Mapping):
            aggregate = CacheEntry(
                data=AggregateResult.from_dict(aggregate_raw["data"]),
                timestamp=int(aggregate_raw["timestamp"]),
            )

        recent: Optional[CacheEntry[List[ReportItem]]] = None
        if isinstance(recent_raw, Mapping):
            recent = CacheEntry(
                data=[ReportItem.from_dict(item) for item in recent_raw["data"]],
                timestamp=int(recent_raw["timestamp"]),
            )

        return cls(aggregate=aggregate, recent_items=recent)


__all__ = [
    "AggregateResult",
    "AiSummary",
    "CACHE_KINDS",
    "CacheEntry",
    "Contact",
    "DepartmentDirectory",
    "DepartmentHint",
    "DepartmentInfo",
    "EntityCache",
    "FIXED_STATUSES",
    "KIND_AGGREGATE",
    "KIND_RECENT_ITEMS",
    "Location",
    "NewsItem",
    "OPEN_STATUSES",
    "REPORT_STATUSES",
    "ReportItem",
    "ReportStats",
]
