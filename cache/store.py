from __future__ import annotations

import enum
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from utils.timeutil import utcnow

from .models import Event, OddsSnapshot


class OddsLookup(enum.Enum):
    NOT_FOUND = "not_found"
    NOT_FETCHED = "not_fetched"


NOT_FOUND = OddsLookup.NOT_FOUND
NOT_FETCHED = OddsLookup.NOT_FETCHED


class SportCache:
    def __init__(self, sport: str):
        self.sport = sport
        self.events: Dict[str, List[Event]] = {}
        self.events_updated: Dict[str, datetime] = {}
        self.odds: Dict[str, OddsSnapshot] = {}
        self.odds_updated: Optional[datetime] = None


class SnapshotStore:
    """Latest events and odds per sport.

    Writers only ever swap in whole objects: a new events list per league or a
    new snapshot per event. Readers get the live collections back and must not
    mutate them.
    """

    def __init__(self, sports: Iterable[str]):
        self._sports: Dict[str, SportCache] = {s: SportCache(s) for s in sports}

    def _sport(self, sport: str) -> SportCache:
        try:
            return self._sports[sport]
        except KeyError:
            raise KeyError(f"unknown sport: {sport}") from None

    @property
    def sports(self) -> List[str]:
        return list(self._sports)

    # writes

    def replace_events(self, sport: str, league: str, events: Iterable[Event], *, at: Optional[datetime] = None) -> List[Event]:
        sc = self._sport(sport)
        new_list = list(events)
        sc.events[league] = new_list
        sc.events_updated[league] = at or utcnow()
        return new_list

    def put_odds(self, sport: str, event_id: str, snapshot: OddsSnapshot) -> None:
        self._sport(sport).odds[event_id] = snapshot

    def mark_odds_refreshed(self, sport: str, *, at: Optional[datetime] = None) -> None:
        self._sport(sport).odds_updated = at or utcnow()

    # reads

    def events(self, sport: str, league: str) -> List[Event]:
        return self._sport(sport).events.get(league, [])

    def events_by_league(self, sport: str) -> Dict[str, List[Event]]:
        return self._sport(sport).events

    def all_events(self, sport: str) -> List[Event]:
        out: List[Event] = []
        for events in self._sport(sport).events.values():
            out.extend(events)
        return out

    def leagues(self, sport: str) -> List[str]:
        return list(self._sport(sport).events)

    def events_updated(self, sport: str, league: str) -> Optional[datetime]:
        return self._sport(sport).events_updated.get(league)

    def events_updated_by_league(self, sport: str) -> Dict[str, datetime]:
        return self._sport(sport).events_updated

    def odds(self, sport: str) -> Dict[str, OddsSnapshot]:
        return self._sport(sport).odds

    def odds_updated(self, sport: str) -> Optional[datetime]:
        return self._sport(sport).odds_updated

    def get_odds(self, sport: str, event_id: str) -> Union[OddsSnapshot, OddsLookup]:
        """Cached snapshot, NOT_FETCHED for a known event without odds, else NOT_FOUND."""
        sc = self._sport(sport)
        snap = sc.odds.get(event_id)
        if snap is not None:
            return snap
        for events in sc.events.values():
            if any(ev.id == event_id for ev in events):
                return NOT_FETCHED
        return NOT_FOUND

    def event_count(self, sport: str) -> int:
        return sum(len(v) for v in self._sport(sport).events.values())

    def odds_count(self, sport: str) -> int:
        return len(self._sport(sport).odds)
