"""
opticOdds
=========

Client side of the OpticOdds v3 REST API as used by the odds cache.

Public API (stable re-exports):
- OpticOddsClient, ConfigurationError, UpstreamError (from http)
- get_active_fixtures, get_unplayed_fixtures, get_fixture_odds,
  get_active_leagues (from catalogue)
- API constants and logging setup (from config): API_KEY, API_BASE, configure_logging
"""
from .config import API_KEY, API_BASE, configure_logging
from .http import ConfigurationError, OpticOddsClient, UpstreamError
from .catalogue import (
    get_active_fixtures,
    get_active_leagues,
    get_fixture_odds,
    get_unplayed_fixtures,
)

__all__ = [
    "API_KEY", "API_BASE", "configure_logging",
    "OpticOddsClient", "ConfigurationError", "UpstreamError",
    "get_active_fixtures", "get_unplayed_fixtures",
    "get_fixture_odds", "get_active_leagues",
]
