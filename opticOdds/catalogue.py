from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .config import FIXTURES_ACTIVE_PATH, FIXTURES_ODDS_PATH, FIXTURES_PATH, LEAGUES_ACTIVE_PATH
from .http import OpticOddsClient, UpstreamError


def _data_list(payload: dict, path: str) -> List[Dict[str, Any]]:
    """Return `payload["data"]` as a list of dicts or fail as a malformed payload."""
    arr = payload.get("data") if isinstance(payload, dict) else None
    if isinstance(arr, dict):
        arr = [arr]
    if not isinstance(arr, list):
        raise UpstreamError("malformed payload: missing data list", url=path)
    return [it for it in arr if isinstance(it, dict)]


async def get_active_fixtures(client: OpticOddsClient, league: str) -> List[Dict[str, Any]]:
    payload = await client.get_json(FIXTURES_ACTIVE_PATH, {"league": league})
    return _data_list(payload, FIXTURES_ACTIVE_PATH)


async def get_unplayed_fixtures(client: OpticOddsClient, sport: str, league: str) -> List[Dict[str, Any]]:
    payload = await client.get_json(FIXTURES_PATH, {"sport": sport, "league": league, "status": "unplayed"})
    return _data_list(payload, FIXTURES_PATH)


async def get_fixture_odds(client: OpticOddsClient, fixture_id: str, sportsbooks: Sequence[str]) -> Dict[str, Any] | None:
    """Odds for one fixture across a chunk of sportsbooks; None when the fixture has no odds."""
    payload = await client.get_json(
        FIXTURES_ODDS_PATH,
        {"fixture_id": fixture_id, "sportsbook": list(sportsbooks)},
    )
    arr = _data_list(payload, FIXTURES_ODDS_PATH)
    return arr[0] if arr else None


async def get_active_leagues(client: OpticOddsClient, sport: str) -> List[Dict[str, Any]]:
    payload = await client.get_json(LEAGUES_ACTIVE_PATH, {"sport": sport})
    return _data_list(payload, LEAGUES_ACTIVE_PATH)
