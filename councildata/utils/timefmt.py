"""Human-readable "time ago" labels for last-updated timestamps."""

from __future__ import annotations

from typing import Optional

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def _plural(count: int, unit: str) -> str:
    return f"1 {unit} ago" if count == 1 else f"{count} {unit}s ago"


def format_time_ago(timestamp: Optional[int], now: int) -> str:
    """Return e.g. ``"5 minutes ago"`` for an epoch-millis timestamp."""
    if not timestamp:
        return "Never"

    diff = now - timestamp
    if diff < MINUTE_MS:
        return "Just now"
    if diff < HOUR_MS:
        return _plural(diff // MINUTE_MS, "minute")
    if diff < DAY_MS:
        return _plural(diff // HOUR_MS, "hour")
    return _plural(diff // DAY_MS, "day")


__all__ = ["format_time_ago"]
