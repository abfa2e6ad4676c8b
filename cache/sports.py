from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from utils.chunk import dedupe_preserve_order

NBA = "nba"
FOOTBALL = "football"
SPORT_ORDER: Tuple[str, ...] = (NBA, FOOTBALL)

NBA_BOOKMAKERS: Tuple[str, ...] = (
    "draftkings", "fanduel", "betmgm", "caesars", "pointsbet",
    "bet365", "pinnacle", "bovada", "betonline", "betrivers",
    "unibet", "wynnbet", "superbook", "barstool", "hard_rock",
)

FOOTBALL_BOOKMAKERS: Tuple[str, ...] = (
    "pinnacle", "bet365", "draftkings", "fanduel", "betmgm", "caesars",
    "betonline", "betrivers", "bovada", "unibet", "pointsbet",
)

# OpticOdds league slugs
FOOTBALL_LEAGUES: Tuple[str, ...] = (
    # top 5 + second divisions
    "epl", "efl_championship", "fa_cup",
    "la_liga", "la_liga_2",
    "bundesliga", "2_bundesliga",
    "serie_a", "serie_b",
    "ligue_1", "ligue_2",
    # rest of Europe
    "eredivisie", "primeira_liga", "jupiler_pro_league", "scottish_premiership",
    "superliga", "austrian_bundesliga", "super_league_greece",
    # UEFA
    "champions_league", "europa_league", "europa_conference_league",
    # other
    "saudi_pro_league", "brasileirao", "liga_profesional",
)


@dataclass(frozen=True)
class SportConfig:
    """How one cached sport maps onto OpticOdds.

    `active_only` sports list fixtures from /fixtures/active by league;
    the others list unplayed fixtures per league of `provider_sport`.
    `multi_league` sports keep their events keyed by league even when only
    one league is configured.
    """
    name: str
    label: str
    provider_sport: str
    leagues: Tuple[str, ...]
    bookmakers: Tuple[str, ...]
    active_only: bool = False
    multi_league: bool = False


def default_sports(
    nba_bookmakers: Optional[Sequence[str]] = None,
    football_bookmakers: Optional[Sequence[str]] = None,
    football_leagues: Optional[Sequence[str]] = None,
) -> Dict[str, SportConfig]:
    return {
        NBA: SportConfig(
            name=NBA,
            label="NBA",
            provider_sport="basketball",
            leagues=(NBA,),
            bookmakers=tuple(dedupe_preserve_order(nba_bookmakers or NBA_BOOKMAKERS)),
            active_only=True,
        ),
        FOOTBALL: SportConfig(
            name=FOOTBALL,
            label="Football",
            provider_sport="soccer",
            leagues=tuple(dedupe_preserve_order(football_leagues or FOOTBALL_LEAGUES)),
            bookmakers=tuple(dedupe_preserve_order(football_bookmakers or FOOTBALL_BOOKMAKERS)),
            multi_league=True,
        ),
    }
