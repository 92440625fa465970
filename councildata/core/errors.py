"""
Error hierarchy for the council data layer, shaped for structured logs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CouncilDataError(Exception):
    """Base class for all council data errors."""

    def __init__(
        self,
        message: str,
        *,
        council: Optional[str] = None,
        kind: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.council = council
        self.kind = kind
        self.details = details or {}

    def as_dict(self) -> Dict[str, Any]:
        """Serializable representation for logs."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "council": self.council,
            "kind": self.kind,
            "details": self.details,
        }


class SourceError(CouncilDataError):
    """Raised by an upstream collaborator that could not deliver data."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.source = source
        self.status_code = status_code
        if source is not None:
            self.details["source"] = source
        if status_code is not None:
            self.details["status_code"] = status_code


class SourcesUnavailableError(CouncilDataError):
    """Raised when every upstream source attempted for a fetch failed."""

    def __init__(self, message: str, *, failed_sources: Optional[List[str]] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.failed_sources = list(failed_sources or [])
        self.details["failed_sources"] = self.failed_sources


class EntityResolutionError(CouncilDataError):
    """Raised when a council key cannot be resolved at all."""


class PersistenceError(CouncilDataError):
    """Raised during read/write of the durable cache copy."""

    def __init__(
        self,
        message: str,
        *,
        key: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.key = key
        self.operation = operation
        if key is not None:
            self.details["key"] = key
        if operation is not None:
            self.details["operation"] = operation


class ConfigError(CouncilDataError):
    """Raised on missing/invalid configuration values."""

    def __init__(
        self,
        message: str,
        *,
        key: Optional[str] = None,
        section: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.key = key
        self.section = section
        if key is not None:
            self.details["key"] = key
        if section is not None:
            self.details["section"] = section


__all__ = [
    "CouncilDataError",
    "SourceError",
    "SourcesUnavailableError",
    "EntityResolutionError",
    "PersistenceError",
    "ConfigError",
]
