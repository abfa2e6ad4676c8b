from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger("oddscache.notifier")

T = TypeVar("T")

Publisher = Callable[[str, Dict[str, Any], Optional[str]], Awaitable[Any]]


class ChangeNotifier:
    """Turns cache mutations into outbound events.

    The fetch and refresh layers hold one of these instead of knowing about
    the push transport. Without a publisher every emit is a no-op.
    """

    def __init__(self, publish: Optional[Publisher] = None):
        self._publish = publish

    async def emit(self, event: str, data: Optional[Dict[str, Any]] = None, *, topic: Optional[str] = None) -> None:
        if self._publish is None:
            return
        try:
            await self._publish(event, data or {}, topic)
        except Exception:
            # a broken transport must not fail the refresh that triggered it
            logger.warning("Publish of %s failed", event, exc_info=True)

    async def wrap(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        start: str,
        complete: str,
        topic: Optional[str] = None,
        start_data: Optional[Dict[str, Any]] = None,
        result_data: Optional[Callable[[T], Dict[str, Any]]] = None,
        release: Optional[Callable[[], None]] = None,
    ) -> T:
        """Emit `start`, run `operation`, emit `complete` with its result payload.

        `release` runs as soon as the operation ends, before the complete
        payload is built, so that payload sees the post-operation state.
        """
        await self.emit(start, start_data, topic=topic)
        try:
            result = await operation()
        finally:
            if release is not None:
                release()
        payload = result_data(result) if result_data is not None else {}
        await self.emit(complete, payload, topic=topic)
        return result
