"""Static council directory loaded from a local YAML file."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from councildata.models.entities import Contact, DepartmentDirectory, DepartmentHint, DepartmentInfo
from councildata.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_DIRECTORY_PATH = Path(__file__).parent.parent / "data" / "councils.yaml"

_SUFFIX_RE = re.compile(r"\s+Council$", re.IGNORECASE)
_BOROUGH_RE = re.compile(r"^London\s+Borough\s+of\s+", re.IGNORECASE)
_CITY_RE = re.compile(r"^City\s+of\s+", re.IGNORECASE)


def normalise_council_name(name: str) -> str:
    """``"London Borough of Camden Council"`` -> ``"Camden"``."""
    cleaned = _SUFFIX_RE.sub("", name.strip())
    cleaned = _BOROUGH_RE.sub("", cleaned)
    cleaned = _CITY_RE.sub("", cleaned)
    return cleaned.strip()


def _load_rows(path: Path) -> Dict[str, Dict[str, Any]]:
    if not path.exists():
        log.warning("Council directory not found at {}", path)
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        log.error("Failed to load council directory {}: {}", path, exc)
        return {}
    if not isinstance(payload, Mapping):
        return {}
    return {str(name): dict(row) for name, row in payload.items() if isinstance(row, Mapping)}


class StaticCouncilDirectory:
    """Leadership, departments and feeds for known councils; instant, no network."""

    def __init__(self, rows: Optional[Mapping[str, Mapping[str, Any]]] = None, path: Path | str | None = None):
        if rows is None:
            rows = _load_rows(Path(path) if path else DEFAULT_DIRECTORY_PATH)
        self._rows: Dict[str, Dict[str, Any]] = {name: dict(row) for name, row in rows.items()}

    def councils(self) -> List[str]:
        return sorted(self._rows)

    def info(self, council: str) -> Optional[Dict[str, Any]]:
        return self._rows.get(normalise_council_name(council))

    def has_council(self, council: str) -> bool:
        return self.info(council) is not None

    def rss_feeds(self, council: str) -> List[Dict[str, str]]:
        row = self.info(council) or {}
        return [dict(feed) for feed in row.get("rss_feeds", []) or [] if feed.get("url")]

    def lookup(self, council: str) -> Optional[DepartmentDirectory]:
        row = self.info(council)
        if not row:
            return None
        leadership = row.get("leadership") or {}
        departments = row.get("departments") or {}
        if not leadership or not departments:
            return None

        leader = leadership.get("council_leader") or {}
        chief = leadership.get("chief_executive") or {}
        return DepartmentDirectory(
            council_name=row.get("name") or council,
            leader=Contact(
                name=leader.get("name", ""),
                role=leader.get("role", ""),
                contact=leader.get("email", ""),
                party=leader.get("party"),
            ),
            chief_executive=Contact(
                name=chief.get("name", ""),
                role=chief.get("role", ""),
                contact=chief.get("email", ""),
            ),
            key_departments=[
                DepartmentInfo(
                    name=dept.get("name", key),
                    head=dept.get("head", ""),
                    contact=f"{dept.get('phone', '')} | {dept.get('email', '')}",
                    responsibilities=list(dept.get("categories", []) or []),
                )
                for key, dept in departments.items()
            ],
        )

    def find_department_for_category(self, council: str, category: str) -> Optional[DepartmentHint]:
        """Department handling ``category``; highways is the fallback contact."""
        row = self.info(council) or {}
        departments: Dict[str, Dict[str, Any]] = row.get("departments") or {}
        if not departments:
            return None

        category_lower = category.lower()
        for dept in departments.values():
            for handled in dept.get("categories", []) or []:
                handled_lower = handled.lower()
                if handled_lower in category_lower or category_lower in handled_lower:
                    return DepartmentHint(
                        name=dept.get("name", ""),
                        contact=f"{dept.get('phone', '')} | {dept.get('email', '')}",
                        reason=f"{dept.get('name', '')} handles {handled} issues",
                    )

        highways = departments.get("highways")
        if highways:
            return DepartmentHint(
                name=highways.get("name", ""),
                contact=f"{highways.get('phone', '')} | {highways.get('email', '')}",
                reason=f"{highways.get('name', '')} is the default contact for general issues",
            )
        return None


__all__ = ["StaticCouncilDirectory", "normalise_council_name", "DEFAULT_DIRECTORY_PATH"]
