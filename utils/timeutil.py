from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, Any

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def to_epoch_seconds(v: Any) -> Optional[int]:
    """Best-effort conversion of common timestamp shapes to epoch seconds."""
    try:
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, datetime):
            if v.tzinfo is None:
                v = v.replace(tzinfo=timezone.utc)
            return int(v.timestamp())
        if isinstance(v, (int, float)):
            if v > 1_000_000_000_000:
                return int(v // 1000)
            return int(v)
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return None
            if s.isdigit():
                return to_epoch_seconds(int(s))
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(dt.timestamp())
    except (ValueError, OverflowError, OSError):
        return None
    return None
