"""
utils
=====

Small helpers shared by the upstream client and the cache engine.

Public API (re-exports):
- chunk_list, dedupe_preserve_order (chunk)
- to_epoch_seconds, utcnow (timeutil)
"""
from .chunk import chunk_list, dedupe_preserve_order
from .timeutil import to_epoch_seconds, utcnow

__all__ = [
    "chunk_list", "dedupe_preserve_order",
    "to_epoch_seconds", "utcnow",
]
