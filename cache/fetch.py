from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from opticOdds.catalogue import (
    get_active_fixtures,
    get_active_leagues,
    get_fixture_odds,
    get_unplayed_fixtures,
)
from opticOdds.extract import (
    extract_home_away,
    extract_league_name,
    extract_price,
    extract_sportsbook,
    extract_start_time,
    extract_status,
)
from opticOdds.http import ConfigurationError, OpticOddsClient, UpstreamError
from utils.chunk import chunk_list, dedupe_preserve_order
from utils.timeutil import to_epoch_seconds, utcnow

from .budget import BudgetExhausted, CallBudget
from .models import Event, OddsSnapshot, Outcome
from .notifier import ChangeNotifier
from .sports import SportConfig
from .state import RefreshState
from .store import SnapshotStore

logger = logging.getLogger("oddscache.fetch")

_FAILED = object()


def event_from_fixture(item: Dict[str, Any], league: str) -> Optional[Event]:
    fid = item.get("id") or item.get("fixture_id")
    if not fid:
        return None
    home, away = extract_home_away(item)
    return Event(
        id=str(fid),
        home=home,
        away=away,
        date=extract_start_time(item),
        league=league or extract_league_name(item) or "",
        status=extract_status(item),
    )


def merge_fixture_odds(snapshot: OddsSnapshot, fixture: Dict[str, Any]) -> int:
    """Append every odds row of `fixture` into `snapshot`; returns rows merged."""
    merged = 0
    for odd in fixture.get("odds") or []:
        if not isinstance(odd, dict):
            continue
        book = extract_sportsbook(odd)
        market = odd.get("market") or odd.get("market_id")
        if not book or not market:
            continue
        snapshot.add_outcome(
            book,
            str(market),
            Outcome(
                name=odd.get("name"),
                price=extract_price(odd),
                points=odd.get("points"),
                is_main=bool(odd.get("is_main")),
            ),
        )
        merged += 1
    home, away = extract_home_away(fixture)
    snapshot.home = snapshot.home or home
    snapshot.away = snapshot.away or away
    snapshot.date = snapshot.date or extract_start_time(fixture)
    return merged


class FetchOrchestrator:
    """Budgeted, sequential retrieval of events and odds into the store.

    Every upstream call goes through `_call`, which consults the budget first
    and turns provider failures into a recorded lastError plus missing data.
    Public operations never raise for upstream trouble or budget exhaustion.
    """

    def __init__(
        self,
        client: OpticOddsClient,
        store: SnapshotStore,
        budget: CallBudget,
        state: RefreshState,
        sports: Mapping[str, SportConfig],
        *,
        notifier: Optional[ChangeNotifier] = None,
        pacing_seconds: float = 0.05,
        horizon_hours: float = 48,
        sportsbook_chunk_size: int = 5,
        now: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.store = store
        self.budget = budget
        self.state = state
        self.sports = dict(sports)
        self.notifier = notifier or ChangeNotifier()
        self.pacing_seconds = pacing_seconds
        self.horizon_hours = horizon_hours
        self.sportsbook_chunk_size = sportsbook_chunk_size
        self._now = now

    def config(self, sport: str) -> SportConfig:
        try:
            return self.sports[sport]
        except KeyError:
            raise KeyError(f"unknown sport: {sport}") from None

    async def _pace(self) -> None:
        if self.pacing_seconds > 0:
            await asyncio.sleep(self.pacing_seconds)

    async def _call(self, description: str, fn, *args):
        """One upstream call; `_FAILED` on error, BudgetExhausted when over quota."""
        try:
            self.client.ensure_configured()
        except ConfigurationError as e:
            logger.error("[API Error] %s (%s)", e, description)
            self.state.record_error(str(e))
            return _FAILED
        n = self.budget.record_call()
        try:
            result = await fn(self.client, *args)
        except UpstreamError as e:
            logger.error("[API Error] %s: %s", description, e)
            self.state.record_error(str(e), url=e.url)
            return _FAILED
        logger.info("[API #%d] %s", n, description)
        return result

    # events

    async def fetch_events(self, sport: str, league: Optional[str] = None) -> List[Event]:
        """Replace the events of one scope; returns what is cached for it afterwards."""
        cfg = self.config(sport)
        if league is None:
            if cfg.multi_league:
                raise ValueError(f"{sport} events are fetched per league")
            league = cfg.leagues[0]

        try:
            if cfg.active_only:
                items = await self._call(f"{cfg.label} events", get_active_fixtures, league)
            else:
                items = await self._call(
                    f"{cfg.label} events for {league}", get_unplayed_fixtures, cfg.provider_sport, league
                )
        except BudgetExhausted:
            logger.warning("[%s] Call budget exhausted, skipping events for %s", cfg.label, league)
            return self.store.events(sport, league)

        if items is _FAILED:
            return self.store.events(sport, league)

        events = [ev for ev in (event_from_fixture(it, league) for it in items) if ev is not None]
        if not events:
            logger.info("[%s] No events returned for %s, keeping %d cached", cfg.label, league, len(self.store.events(sport, league)))
            return self.store.events(sport, league)

        cached = self.store.replace_events(sport, league, events, at=self._now())
        logger.info("[%s] Cached %d events for %s", cfg.label, len(cached), league)
        return cached

    async def fetch_all_events(self, sport: str) -> int:
        """Fetch events for every league of `sport` in order; returns leagues attempted."""
        cfg = self.config(sport)
        attempted = 0
        for league in cfg.leagues:
            if not self.budget.can_call():
                logger.warning("[%s] Call budget exhausted after %d leagues", cfg.label, attempted)
                break
            if attempted:
                await self._pace()
            await self.fetch_events(sport, league)
            attempted += 1
        return attempted

    # odds

    async def fetch_odds_for_event(self, sport: str, event_id: str) -> OddsSnapshot:
        """Fetch one event's odds bookmaker chunk by chunk, in list order.

        The snapshot is committed only when at least one call succeeded, so a
        fully failed or budget-blocked fetch keeps the previous entry.
        """
        cfg = self.config(sport)
        snapshot = OddsSnapshot(cached_at=self._now())
        succeeded = 0
        chunks = chunk_list(list(cfg.bookmakers), self.sportsbook_chunk_size)

        for idx, books in enumerate(chunks):
            if idx:
                await self._pace()
            try:
                fixture = await self._call(
                    f"{cfg.label} odds {event_id} [{','.join(books)}]", get_fixture_odds, event_id, books
                )
            except BudgetExhausted:
                logger.warning("[%s] Call budget exhausted during odds for %s", cfg.label, event_id)
                break
            if fixture is _FAILED:
                continue
            succeeded += 1
            if fixture:
                merge_fixture_odds(snapshot, fixture)

        if succeeded:
            self.store.put_odds(sport, event_id, snapshot)
            await self.notifier.emit(
                "oddsUpdate",
                {"sport": sport, "eventId": event_id, "odds": snapshot.to_dict()},
                topic=sport,
            )
        return snapshot

    def select_events(self, sport: str) -> List[Event]:
        """Known events starting within the look-ahead horizon, soonest first."""
        horizon = to_epoch_seconds(self._now()) + int(self.horizon_hours * 3600)
        dated = []
        for ev in self.store.all_events(sport):
            start = ev.start_epoch
            if start is None or start > horizon:
                continue
            dated.append((start, ev))
        dated.sort(key=lambda pair: pair[0])
        ordered = dedupe_preserve_order(ev.id for _, ev in dated)
        by_id = {ev.id: ev for _, ev in dated}
        return [by_id[i] for i in ordered]

    async def refresh_odds(self, sport: str, *, fetch_missing_events: bool = True) -> int:
        """Greedy odds pass over `select_events`; returns events fetched."""
        cfg = self.config(sport)
        if fetch_missing_events and not self.store.all_events(sport):
            await self.fetch_all_events(sport)

        events = self.select_events(sport)
        logger.info("[%s] Refreshing odds for %d events...", cfg.label, len(events))
        fetched = 0
        for ev in events:
            if not self.budget.can_call():
                logger.warning("[%s] Call budget exhausted, %d events left without fresh odds", cfg.label, len(events) - fetched)
                break
            if fetched:
                await self._pace()
            await self.fetch_odds_for_event(sport, ev.id)
            fetched += 1

        self.store.mark_odds_refreshed(sport, at=self._now())
        return fetched

    async def refresh_sport(self, sport: str) -> int:
        """Events for every league, then odds; one sport's refresh cycle."""
        await self.fetch_all_events(sport)
        return await self.refresh_odds(sport, fetch_missing_events=False)

    async def fetch_available_leagues(self, provider_sport: str) -> List[Dict[str, Any]]:
        try:
            items = await self._call(f"Available {provider_sport} leagues", get_active_leagues, provider_sport)
        except BudgetExhausted:
            logger.warning("Call budget exhausted, cannot list %s leagues", provider_sport)
            return []
        return [] if items is _FAILED else items
