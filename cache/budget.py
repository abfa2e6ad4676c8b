from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from utils.timeutil import utcnow


class BudgetExhausted(Exception):
    """Stop condition for fetch loops; never recorded as a refresh error."""


class CallBudget:
    """Upstream call quota over a fixed accounting window.

    `limit <= 0` (or None) selects the quota-free variant: calls are never
    gated but still counted for observability.
    """

    def __init__(
        self,
        limit: Optional[int] = 5000,
        window_seconds: float = 3600,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit if limit and limit > 0 else None
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self.count = 0
        self.total_calls = 0
        self.window_start = clock()
        self.window_started_at: datetime = utcnow()

    @property
    def bounded(self) -> bool:
        return self.limit is not None

    def _roll_window(self) -> None:
        now = self._clock()
        if now - self.window_start >= self.window_seconds:
            self.count = 0
            self.window_start = now
            self.window_started_at = utcnow()

    def can_call(self) -> bool:
        self._roll_window()
        if self.limit is None:
            return True
        return self.count < self.limit

    def record_call(self) -> int:
        """Count one upstream call; returns the lifetime call number."""
        if not self.can_call():
            raise BudgetExhausted(f"call budget of {self.limit} per {self.window_seconds:g}s exhausted")
        self.count += 1
        self.total_calls += 1
        return self.total_calls

    def remaining(self) -> Optional[int]:
        self._roll_window()
        if self.limit is None:
            return None
        return max(0, self.limit - self.count)

    def to_dict(self) -> Dict[str, Any]:
        remaining = self.remaining()
        return {
            "count": self.count,
            "limit": self.limit,
            "remaining": remaining,
            "windowSeconds": self.window_seconds,
            "windowStart": self.window_started_at,
            "totalCalls": self.total_calls,
        }
