from __future__ import annotations

import os
import logging
from dotenv import load_dotenv

# Load API key from .env (if present)
load_dotenv()
API_KEY = os.getenv("OPTIC_ODDS_API_KEY") or os.getenv("OPTICODDS_API_KEY") or ""

# Optic Odds API endpoints
API_BASE = os.getenv("OPTIC_API_BASE", "https://api.opticodds.com/api/v3").rstrip("/")
FIXTURES_PATH = "/fixtures"
FIXTURES_ACTIVE_PATH = "/fixtures/active"
FIXTURES_ODDS_PATH = "/fixtures/odds"
LEAGUES_ACTIVE_PATH = "/leagues/active"

# Tracing / logging setup
TRACE_ENABLED = os.getenv("TRACE", "0").strip().lower() in ("1", "true", "yes", "on")
logger = logging.getLogger("opticodds")


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once; TRACE sends everything to a DEBUG trace file."""
    if TRACE_ENABLED:
        logging.basicConfig(
            filename=os.getenv("TRACE_FILE", "trace.log"),
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        return
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
