from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from utils.timeutil import to_epoch_seconds


@dataclass(frozen=True)
class Event:
    """A fixture as cached for one sport/league scope."""
    id: str
    home: Optional[str]
    away: Optional[str]
    date: Optional[str]
    league: str
    status: Optional[str] = None

    @property
    def start_epoch(self) -> Optional[int]:
        return to_epoch_seconds(self.date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "home": self.home,
            "away": self.away,
            "date": self.date,
            "league": self.league,
            "status": self.status,
        }


@dataclass(frozen=True)
class Outcome:
    name: Optional[str]
    price: Any
    points: Optional[float] = None
    is_main: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "price": self.price, "points": self.points, "isMain": self.is_main}


@dataclass
class BookmakerOdds:
    markets: Dict[str, List[Outcome]] = field(default_factory=dict)

    def add(self, market: str, outcome: Outcome) -> None:
        self.markets.setdefault(market, []).append(outcome)

    def to_dict(self) -> Dict[str, Any]:
        return {"markets": {m: [o.to_dict() for o in outs] for m, outs in self.markets.items()}}


@dataclass
class OddsSnapshot:
    """Latest odds for one event: bookmaker -> market -> outcomes.

    Only bookmakers that returned data have a key; a failed or budget-skipped
    bookmaker is simply absent.
    """
    cached_at: datetime
    bookmakers: Dict[str, BookmakerOdds] = field(default_factory=dict)
    home: Optional[str] = None
    away: Optional[str] = None
    date: Optional[str] = None

    def add_outcome(self, bookmaker: str, market: str, outcome: Outcome) -> None:
        self.bookmakers.setdefault(bookmaker, BookmakerOdds()).add(market, outcome)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bookmakers": {name: b.to_dict() for name, b in self.bookmakers.items()},
            "home": self.home,
            "away": self.away,
            "date": self.date,
            "cachedAt": self.cached_at,
        }
