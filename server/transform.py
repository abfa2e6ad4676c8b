from __future__ import annotations

from typing import Any, Dict, List

from cache.models import Event, OddsSnapshot
from cache.service import OddsCache


def events_with_odds(events: List[Event], odds: Dict[str, OddsSnapshot]) -> List[Dict[str, Any]]:
    """Event dicts with their cached odds attached (None when not fetched yet)."""
    out: List[Dict[str, Any]] = []
    for ev in events:
        snap = odds.get(ev.id)
        out.append({**ev.to_dict(), "odds": snap.to_dict() if snap is not None else None})
    return out


def _with_odds_count(rows: List[Dict[str, Any]]) -> int:
    return sum(1 for r in rows if r.get("odds") is not None)


def joined_scope(cache: OddsCache, sport: str, league: str) -> Dict[str, Any]:
    events = cache.store.events(sport, league)
    rows = events_with_odds(events, cache.store.odds(sport))
    return {
        "events": rows,
        "lastEventsUpdate": cache.store.events_updated(sport, league),
        "lastOddsUpdate": cache.store.odds_updated(sport),
        "totalEvents": len(rows),
        "eventsWithOdds": _with_odds_count(rows),
    }


def joined_league(cache: OddsCache, sport: str, league: str) -> Dict[str, Any]:
    return {"league": league, **joined_scope(cache, sport, league)}


def joined_all_leagues(cache: OddsCache, sport: str) -> Dict[str, Any]:
    odds = cache.store.odds(sport)
    leagues: Dict[str, List[Dict[str, Any]]] = {}
    for league, events in cache.store.events_by_league(sport).items():
        leagues[league] = events_with_odds(events, odds)
    flat = [r for rows in leagues.values() for r in rows]
    return {
        "leagues": leagues,
        "lastOddsUpdate": cache.store.odds_updated(sport),
        "totalEvents": len(flat),
        "eventsWithOdds": _with_odds_count(flat),
    }
