from __future__ import annotations

from typing import Any, Iterable, Set

from cache.state import FULL_REFRESH


def norm_token(x: Any) -> str:
    if x is None:
        return ""
    return str(x).strip().lower()


def normalize_filter_values(value: Any) -> Set[str]:
    """
    Accept str (comma-separated), list/tuple/set, or scalar and normalize to a lower-cased set.
    """
    if value is None:
        return set()
    if isinstance(value, str):
        cand = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        cand = list(value)
    else:
        cand = [value]
    return {t for t in (norm_token(c) for c in cand) if t}


def resolve_topics(value: Any, known: Iterable[str]) -> Set[str]:
    """Map a subscribe/unsubscribe `sport` value to known topics; "all" means every sport."""
    known = set(known)
    wanted = normalize_filter_values(value)
    if not wanted or FULL_REFRESH in wanted:
        return known
    unknown = wanted - known
    if unknown:
        raise ValueError(f"unknown sport: {', '.join(sorted(unknown))}")
    return wanted


def parse_refresh_type(value: Any, known: Iterable[str]) -> str:
    """Refresh kind from an admin/subscriber request: a sport name or "all" (default)."""
    v = norm_token(value)
    if v in ("", FULL_REFRESH):
        return FULL_REFRESH
    if v not in set(known):
        raise ValueError(f"unknown refresh type: {value}")
    return v
