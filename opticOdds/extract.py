from __future__ import annotations

from typing import Any, Optional


def pick_first(item: dict, keys: list[str]):
    for k in keys:
        if isinstance(item, dict) and k in item and item.get(k) not in (None, ""):
            return item.get(k)
    return None


def _norm_name(v) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    if s == "" or s.lower() in ("none", "null", "n/a", "na"):
        return None
    return s


def extract_home_away(item: dict) -> tuple[Optional[str], Optional[str]]:
    """Extract home/away participant names from the fixture shapes OpticOdds returns.

    v3 fixtures carry `home_team_display`/`away_team_display`; older payloads
    use `home_team`/`away_team` as plain strings or `{name}` objects, and some
    only list `competitors`.
    """
    if not isinstance(item, dict):
        return (None, None)

    def name_of(x) -> Optional[str]:
        if isinstance(x, dict):
            return _norm_name(pick_first(x, ["name", "display_name", "team_name", "full_name", "short_name"]))
        return _norm_name(x)

    home = name_of(pick_first(item, ["home_team_display", "home_team", "home"]))
    away = name_of(pick_first(item, ["away_team_display", "away_team", "away"]))
    if not home or not away:
        for key in ("competitors", "participants", "teams"):
            coll = item.get(key)
            if isinstance(coll, list) and len(coll) >= 2:
                home = home or name_of(coll[0])
                away = away or name_of(coll[1])
                break
    return (home, away)


def extract_start_time(item: dict) -> Optional[str]:
    v = pick_first(item, ["start_date", "start_time", "commence_time", "kickoff", "start_at"])
    return None if v is None else str(v)


def extract_league_name(item: dict) -> Optional[str]:
    lg = item.get("league")
    if isinstance(lg, str):
        return lg
    if isinstance(lg, dict):
        return lg.get("id") or lg.get("name") or lg.get("title")
    return None


def extract_status(item: dict) -> Optional[str]:
    st = item.get("status")
    if isinstance(st, dict):
        st = st.get("name") or st.get("id")
    return _norm_name(st)


def extract_sportsbook(item: dict) -> Optional[str]:
    sb = item.get("sportsbook")
    if isinstance(sb, dict):
        sb = sb.get("id") or sb.get("name")
    return _norm_name(sb)


def extract_price(item: dict) -> Any:
    """Return the offered price as-is (numeric when the feed sends a number)."""
    v = item.get("price")
    if isinstance(v, dict):
        v = pick_first(v, ["american", "decimal", "value"])
    if isinstance(v, str):
        try:
            return float(v)
        except ValueError:
            return v
    return v
