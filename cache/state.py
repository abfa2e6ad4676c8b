from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Set

from utils.timeutil import utcnow

FULL_REFRESH = "all"


@dataclass(frozen=True)
class ErrorInfo:
    time: datetime
    message: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"time": self.time, "message": self.message}
        if self.url:
            out["url"] = self.url
        return out


@dataclass
class RefreshState:
    """Single-flight bookkeeping for full and per-sport refreshes.

    A full refresh claims FULL_REFRESH and needs nothing else in flight; a
    sport refresh needs neither a full refresh nor the same sport in flight.
    Claims happen without an intervening await, so they are atomic on the
    event loop.
    """
    in_flight: Set[str] = field(default_factory=set)
    last_error: Optional[ErrorInfo] = None

    @property
    def is_refreshing(self) -> bool:
        return bool(self.in_flight)

    def can_begin(self, scope: str) -> bool:
        if scope == FULL_REFRESH:
            return not self.in_flight
        return FULL_REFRESH not in self.in_flight and scope not in self.in_flight

    def try_begin(self, scope: str) -> bool:
        if not self.can_begin(scope):
            return False
        self.in_flight.add(scope)
        return True

    def end(self, scope: str) -> None:
        self.in_flight.discard(scope)

    def record_error(self, message: str, url: Optional[str] = None) -> ErrorInfo:
        self.last_error = ErrorInfo(time=utcnow(), message=message, url=url)
        return self.last_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isRefreshing": self.is_refreshing,
            "refreshing": sorted(self.in_flight),
            "lastError": self.last_error.to_dict() if self.last_error else None,
        }
