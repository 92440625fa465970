"""Cache freshness decisions based on entry age."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

STALE_AFTER_MS = 60 * 60 * 1000  # 1 hour
HARD_EXPIRE_AFTER_MS = 24 * 60 * 60 * 1000  # 24 hours
REFRESH_INTERVAL_MS = 60 * 60 * 1000  # 1 hour

FRESH = "fresh"
STALE = "stale"
EXPIRED = "expired"

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True, frozen=True)
class FreshnessPolicy:
    """Valid/stale/expired rules for cached entries.

    ``refresh_interval_ms`` is carried here so the scheduler and the policy
    are configured together; the policy itself never uses it.
    """

    stale_after_ms: int = STALE_AFTER_MS
    hard_expire_after_ms: int = HARD_EXPIRE_AFTER_MS
    refresh_interval_ms: int = REFRESH_INTERVAL_MS
    clock: Clock = field(default=now_ms, compare=False)

    def __post_init__(self) -> None:
        if self.stale_after_ms <= 0 or self.hard_expire_after_ms <= 0 or self.refresh_interval_ms <= 0:
            raise ValueError("freshness durations must be positive")

    def now(self) -> int:
        return int(self.clock())

    def age_ms(self, timestamp: Optional[int]) -> Optional[int]:
        if timestamp is None:
            return None
        return self.now() - int(timestamp)

    def is_valid(self, timestamp: Optional[int]) -> bool:
        """True when an entry may be served without a blocking refetch."""
        if timestamp is None:
            return False
        return self.now() - int(timestamp) < self.hard_expire_after_ms

    def is_stale(self, timestamp: Optional[int]) -> bool:
        """True when an entry should be refreshed in the background."""
        if timestamp is None:
            return True
        age = self.now() - int(timestamp)
        # Expired entries always count as stale, even if stale_after exceeds the expiry.
        return age > self.stale_after_ms or age >= self.hard_expire_after_ms

    def classify(self, timestamp: Optional[int]) -> str:
        if not self.is_valid(timestamp):
            return EXPIRED
        if self.is_stale(timestamp):
            return STALE
        return FRESH


__all__ = [
    "FreshnessPolicy",
    "Clock",
    "now_ms",
    "FRESH",
    "STALE",
    "EXPIRED",
    "STALE_AFTER_MS",
    "HARD_EXPIRE_AFTER_MS",
    "REFRESH_INTERVAL_MS",
]
