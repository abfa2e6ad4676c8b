from __future__ import annotations
from typing import Iterable, Sequence, TypeVar

T = TypeVar("T")

def chunk_list(items: Sequence[T], size: int | None) -> list[list[T]]:
    """Split `items` into consecutive groups of `size`; a missing or non-positive size means one group."""
    items = list(items or [])
    if not items:
        return []
    n = int(size or 0)
    if n <= 0:
        return [items]
    return [items[i:i + n] for i in range(0, len(items), n)]

def dedupe_preserve_order(items: Iterable[T]) -> list[T]:
    """First occurrence wins; used for bookmaker/league lists and ordered event ids."""
    return list(dict.fromkeys(items))
