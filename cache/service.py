from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from opticOdds.http import OpticOddsClient

from .budget import CallBudget
from .fetch import FetchOrchestrator
from .models import OddsSnapshot
from .notifier import ChangeNotifier, Publisher
from .scheduler import RefreshScheduler
from .sports import SPORT_ORDER, SportConfig, default_sports
from .state import RefreshState
from .store import OddsLookup, SnapshotStore


class OddsCache:
    """The cache engine for one process, built once at startup.

    Owns the store, budget and refresh state, wires the orchestrator and
    scheduler to a shared notifier, and exposes the read views that the REST
    and push layers serve.
    """

    def __init__(
        self,
        client: OpticOddsClient,
        *,
        sports: Optional[Mapping[str, SportConfig]] = None,
        budget: Optional[CallBudget] = None,
        publish: Optional[Publisher] = None,
        pacing_seconds: float = 0.05,
        horizon_hours: float = 48,
        sportsbook_chunk_size: int = 5,
        refresh_interval_seconds: float = 600,
    ):
        self.client = client
        self.sports = dict(sports or default_sports())
        self.budget = budget or CallBudget()
        self.state = RefreshState()
        self.store = SnapshotStore(self.sports)
        self.notifier = ChangeNotifier(publish)
        self.orchestrator = FetchOrchestrator(
            client,
            self.store,
            self.budget,
            self.state,
            self.sports,
            notifier=self.notifier,
            pacing_seconds=pacing_seconds,
            horizon_hours=horizon_hours,
            sportsbook_chunk_size=sportsbook_chunk_size,
        )
        self.scheduler = RefreshScheduler(
            self.orchestrator,
            self.state,
            notifier=self.notifier,
            order=[s for s in SPORT_ORDER if s in self.sports],
            interval_seconds=refresh_interval_seconds,
            sport_payload=self.sport_snapshot,
            status_payload=self.status,
        )

    @classmethod
    def from_settings(cls, settings, *, client: Optional[OpticOddsClient] = None, publish: Optional[Publisher] = None) -> "OddsCache":
        client = client or OpticOddsClient(
            api_key=settings.api_key,
            api_base=settings.api_base,
            timeout=settings.request_timeout_seconds,
        )
        return cls(
            client,
            sports=default_sports(
                nba_bookmakers=settings.nba_bookmakers,
                football_bookmakers=settings.football_bookmakers,
                football_leagues=settings.football_leagues,
            ),
            budget=CallBudget(settings.call_budget_limit, settings.call_budget_window_seconds),
            publish=publish,
            pacing_seconds=settings.pacing_ms / 1000.0,
            horizon_hours=settings.odds_horizon_hours,
            sportsbook_chunk_size=settings.sportsbook_chunk_size,
            refresh_interval_seconds=settings.refresh_interval_seconds,
        )

    # views

    def events_view(self, sport: str, league: Optional[str] = None) -> Dict[str, Any]:
        """Events of one scope, or every league of a multi-league sport."""
        cfg = self.sports[sport]
        if league is None and not cfg.multi_league:
            league = cfg.leagues[0]
        if league is not None:
            events = self.store.events(sport, league)
            return {
                "events": [ev.to_dict() for ev in events],
                "lastUpdate": self.store.events_updated(sport, league),
                "count": len(events),
            }
        by_league = self.store.events_by_league(sport)
        return {
            "events": {lg: [ev.to_dict() for ev in evs] for lg, evs in by_league.items()},
            "lastUpdate": dict(self.store.events_updated_by_league(sport)),
            "leagues": list(by_league),
            "count": self.store.event_count(sport),
        }

    def odds_view(self, sport: str) -> Dict[str, Any]:
        odds = self.store.odds(sport)
        return {
            "odds": {eid: snap.to_dict() for eid, snap in odds.items()},
            "lastUpdate": self.store.odds_updated(sport),
            "eventCount": len(odds),
        }

    def get_odds(self, sport: str, event_id: str) -> Union[OddsSnapshot, OddsLookup]:
        return self.store.get_odds(sport, event_id)

    def sport_snapshot(self, sport: str) -> Dict[str, Any]:
        """Everything cached for a sport, as pushed on subscribe and after refreshes."""
        return {
            "sport": sport,
            "events": self.events_view(sport),
            "odds": self.odds_view(sport),
        }

    def sport_status(self, sport: str) -> Dict[str, Any]:
        cfg = self.sports[sport]
        out: Dict[str, Any] = {
            "eventsCount": self.store.event_count(sport),
            "oddsCount": self.store.odds_count(sport),
            "lastOddsUpdate": self.store.odds_updated(sport),
        }
        if cfg.multi_league:
            out["leagues"] = self.store.leagues(sport)
            out["lastEventsUpdate"] = dict(self.store.events_updated_by_league(sport))
        else:
            out["lastEventsUpdate"] = self.store.events_updated(sport, cfg.leagues[0])
        return out

    def status(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "apiCallCount": self.budget.total_calls,
            "budget": self.budget.to_dict(),
            **self.state.to_dict(),
            "schedulerRunning": self.scheduler.running,
        }
        for sport in self.sports:
            out[sport] = self.sport_status(sport)
        return out

    async def available_leagues(self, sport: str) -> List[Dict[str, Any]]:
        cfg = self.sports.get(sport)
        return await self.orchestrator.fetch_available_leagues(cfg.provider_sport if cfg else sport)
