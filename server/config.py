from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from opticOdds.config import API_BASE, API_KEY
from utils.chunk import dedupe_preserve_order


def _env_bool(name: str, default: bool = False) -> bool:
    return (os.getenv(name, str(int(default))) or "").strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name, default)
    return default if v is None else str(v)


def _env_list(name: str) -> Optional[Tuple[str, ...]]:
    """Comma-separated override list; None when unset so built-in lists apply."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    vals = [v.strip().lower() for v in raw.split(",") if v.strip()]
    return tuple(dedupe_preserve_order(vals)) or None


@dataclass(frozen=True)
class Settings:
    # Upstream
    api_key: str = API_KEY
    api_base: str = API_BASE
    request_timeout_seconds: float = _env_float("REQUEST_TIMEOUT_SECONDS", 30.0)

    # Call budget (limit <= 0 disables the gate, calls are still counted)
    call_budget_limit: int = _env_int("CALL_BUDGET_LIMIT", 5000)
    call_budget_window_seconds: float = _env_float("CALL_BUDGET_WINDOW_SECONDS", 3600.0)

    # Refresh cycle
    scheduler_enabled: bool = _env_bool("SCHEDULER_ENABLED", True)
    refresh_on_startup: bool = _env_bool("REFRESH_ON_STARTUP", True)
    refresh_interval_seconds: float = _env_float("REFRESH_INTERVAL_SECONDS", 600.0)
    pacing_ms: int = _env_int("PACING_MS", 50)
    odds_horizon_hours: float = _env_float("ODDS_HORIZON_HOURS", 48.0)
    sportsbook_chunk_size: int = _env_int("SPORTSBOOK_CHUNK_SIZE", 5)

    # Coverage overrides
    nba_bookmakers: Optional[Tuple[str, ...]] = _env_list("NBA_BOOKMAKERS")
    football_bookmakers: Optional[Tuple[str, ...]] = _env_list("FOOTBALL_BOOKMAKERS")
    football_leagues: Optional[Tuple[str, ...]] = _env_list("FOOTBALL_LEAGUES")

    # Debugging / behavior
    ws_debug: bool = _env_bool("WS_DEBUG", False)
    log_level: str = _env_str("LOG_LEVEL", "INFO")

    # Ports / run
    port: int = _env_int("PORT", 3002)
