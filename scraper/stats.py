"""
Run statistics bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class RunStats:
    """
    Immutable snapshot of one run's counters and its terminal error, if any.
    """

    pages: int
    pages_success: int
    items: int
    items_success: int
    requests: int
    requests_start_time: datetime
    error: Any = None

    def to_dict(self) -> dict[str, Any]:
        errors = None
        if self.error is not None:
            raw = self.error if isinstance(self.error, list) else [self.error]
            errors = [str(error) for error in raw]
        return {
            "pages": self.pages,
            "pages_success": self.pages_success,
            "items": self.items,
            "items_success": self.items_success,
            "requests": self.requests,
            "requests_start_time": self.requests_start_time.isoformat(),
            "error": errors,
        }


class StatsTracker:
    """
    Mutable counters for pages, items and requests.

    Counters are only touched from the event loop, between suspension points.
    """

    def __init__(self) -> None:
        self.pages = 0
        self.pages_success = 0
        self.items = 0
        self.items_success = 0
        self.requests = 0
        self.requests_start_time = datetime.now(timezone.utc)

    def restart_clock(self) -> None:
        self.requests_start_time = datetime.now(timezone.utc)

    def requests_per_second(self, now: datetime | None = None) -> float:
        current = now or datetime.now(timezone.utc)
        elapsed = (current - self.requests_start_time).total_seconds()
        if elapsed <= 0:
            return 0.0
        return self.requests / elapsed

    def snapshot(self, *, error: Any = None) -> RunStats:
        return RunStats(
            pages=self.pages,
            pages_success=self.pages_success,
            items=self.items,
            items_success=self.items_success,
            requests=self.requests,
            requests_start_time=self.requests_start_time,
            error=error,
        )
