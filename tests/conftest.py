"""
tests/conftest.py

Purpose:
    Shared fakes for the OpticOdds client and helpers that build fixtures,
    odds rows and a wired OddsCache without any network access.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

import pytest

from cache import CallBudget, OddsCache, default_sports
from opticOdds.http import ConfigurationError, UpstreamError
from utils.timeutil import utcnow

NBA_BOOKS = ("draftkings", "fanduel", "betmgm", "caesars", "pinnacle")
FOOTBALL_BOOKS = ("pinnacle", "bet365", "unibet")
FOOTBALL_LEAGUES = ("epl", "la_liga")


def fixture(fid: str, home: str, away: str, *, hours_from_now: float = 2, status: str = "unplayed") -> Dict[str, Any]:
    start = (utcnow() + timedelta(hours=hours_from_now)).isoformat()
    return {
        "id": fid,
        "home_team_display": home,
        "away_team_display": away,
        "start_date": start,
        "status": status,
    }


def odds_row(book: str, market: str, name: str, price: float, *, points: Optional[float] = None, is_main: bool = True) -> Dict[str, Any]:
    return {
        "sportsbook": book,
        "market": market,
        "name": name,
        "price": price,
        "points": points,
        "is_main": is_main,
    }


class FakeOpticClient:
    """Routes get_json calls by path to in-memory data and records each call."""

    def __init__(
        self,
        *,
        api_key: str = "test-key",
        fixtures: Optional[Dict[str, List[dict]]] = None,
        odds: Optional[Dict[str, Dict[str, List[dict]]]] = None,
        failing_books: Iterable[str] = (),
        failing_paths: Iterable[str] = (),
        leagues: Optional[List[dict]] = None,
    ):
        self.api_key = api_key
        self.fixtures = fixtures or {}
        self.odds = odds or {}
        self.failing_books = set(failing_books)
        self.failing_paths = set(failing_paths)
        self.leagues = leagues or []
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    def odds_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == "/fixtures/odds"]

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("API key not configured")

    async def get_json(self, path: str, params: Dict[str, Any] | None = None) -> dict:
        self.ensure_configured()
        params = dict(params or {})
        self.calls.append((path, params))
        if self.gate is not None:
            await self.gate.wait()
        if path in self.failing_paths:
            raise UpstreamError("HTTP 500: Internal Server Error", url=f"https://api.test{path}", status=500)
        if path in ("/fixtures/active", "/fixtures"):
            return {"data": list(self.fixtures.get(params.get("league"), []))}
        if path == "/fixtures/odds":
            fid = params["fixture_id"]
            books = list(params.get("sportsbook") or [])
            if any(b in self.failing_books for b in books):
                raise UpstreamError("Read timed out", url=f"https://api.test{path}")
            rows = [row for b in books for row in self.odds.get(fid, {}).get(b, [])]
            return {"data": [{"id": fid, "home_team_display": "Home", "away_team_display": "Away", "odds": rows}]}
        if path == "/leagues/active":
            return {"data": list(self.leagues)}
        raise UpstreamError("HTTP 404: Not Found", url=f"https://api.test{path}", status=404)

    def close(self) -> None:
        self.closed = True


class RecordingPublisher:
    def __init__(self):
        self.events: List[tuple] = []

    async def __call__(self, event: str, data: dict, topic: Optional[str]) -> None:
        self.events.append((event, data, topic))

    def names(self) -> List[str]:
        return [e[0] for e in self.events]


def build_cache(client: FakeOpticClient, *, limit: Optional[int] = 1000, publish=None, **kwargs) -> OddsCache:
    kwargs.setdefault("pacing_seconds", 0)
    kwargs.setdefault("sportsbook_chunk_size", 1)
    return OddsCache(
        client,
        sports=default_sports(
            nba_bookmakers=NBA_BOOKS,
            football_bookmakers=FOOTBALL_BOOKS,
            football_leagues=FOOTBALL_LEAGUES,
        ),
        budget=CallBudget(limit, 3600),
        publish=publish,
        **kwargs,
    )


@pytest.fixture
def nba_client() -> FakeOpticClient:
    return FakeOpticClient(
        fixtures={
            "nba": [
                fixture("E2", "Celtics", "Knicks", hours_from_now=5),
                fixture("E1", "Lakers", "Warriors", hours_from_now=1),
                fixture("E3", "Bulls", "Heat", hours_from_now=9),
            ],
            "epl": [fixture("F1", "Arsenal", "Chelsea", hours_from_now=3)],
            "la_liga": [fixture("F2", "Sevilla", "Betis", hours_from_now=4)],
        },
        odds={
            "E1": {
                "draftkings": [odds_row("draftkings", "moneyline", "Lakers", -150), odds_row("draftkings", "moneyline", "Warriors", 130)],
                "fanduel": [odds_row("fanduel", "point_spread", "Lakers", -110, points=-3.5)],
            },
            "F1": {"pinnacle": [odds_row("pinnacle", "moneyline", "Arsenal", 2.1)]},
        },
    )
