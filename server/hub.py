from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from utils.timeutil import utcnow

from .config import Settings

logger = logging.getLogger("server.hub")


class Hub:
    """
    Connection hub that tracks per-connection topic subscriptions and fans
    cache events out to matching recipients.

    Events without a topic go to every connection; topic events (a sport name)
    only to connections subscribed to that sport. Delivery is best effort: a
    failed send drops the connection.
    """
    def __init__(self, settings: Settings):
        self.settings = settings
        self.connections: Set[WebSocket] = set()
        self.prefs: Dict[WebSocket, Dict[str, Any]] = {}
        self.lock = asyncio.Lock()
        self.broadcast_total = 0
        self.dropped_connections = 0

    async def connect(self, ws: WebSocket):
        await ws.accept()
        async with self.lock:
            self.connections.add(ws)
            self.prefs[ws] = {"topics": set()}

    async def disconnect(self, ws: WebSocket):
        async with self.lock:
            self.connections.discard(ws)
            self.prefs.pop(ws, None)

    async def subscribe(self, ws: WebSocket, topics: Iterable[str]) -> list[str]:
        async with self.lock:
            if ws not in self.prefs:
                return []
            current = self.prefs[ws]["topics"]
            current.update(topics)
            return sorted(current)

    async def unsubscribe(self, ws: WebSocket, topics: Iterable[str]) -> list[str]:
        async with self.lock:
            if ws not in self.prefs:
                return []
            current = self.prefs[ws]["topics"]
            current.difference_update(topics)
            return sorted(current)

    @staticmethod
    def envelope(event: str, data: Dict[str, Any], topic: Optional[str] = None) -> str:
        message = {"type": event, "data": data, "topic": topic, "timestamp": utcnow()}
        return json.dumps(jsonable_encoder(message), ensure_ascii=False)

    async def send(self, ws: WebSocket, event: str, data: Dict[str, Any], topic: Optional[str] = None) -> bool:
        """Send to one connection; False (and the connection dropped) on failure."""
        try:
            await ws.send_text(self.envelope(event, data, topic))
            return True
        except Exception:
            logger.debug("send of %s failed, dropping connection", event, exc_info=True)
            await self.disconnect(ws)
            self.dropped_connections += 1
            return False

    async def broadcast(self, event: str, data: Dict[str, Any], topic: Optional[str] = None) -> int:
        """
        Broadcast an event to every matching connection; returns the number delivered.
        """
        text = self.envelope(event, data, topic)
        async with self.lock:
            targets = [
                ws for ws in self.connections
                if topic is None or topic in self.prefs.get(ws, {}).get("topics", set())
            ]

        if self.settings.ws_debug:
            logger.debug("broadcast %s topic=%s targets=%d", event, topic, len(targets))

        delivered = 0
        dead: list = []
        for ws in targets:
            try:
                await ws.send_text(text)
                delivered += 1
            except Exception:
                if self.settings.ws_debug:
                    logger.debug("broadcast send failed", exc_info=True)
                dead.append(ws)

        if dead:
            async with self.lock:
                for ws in dead:
                    self.connections.discard(ws)
                    self.prefs.pop(ws, None)
            self.dropped_connections += len(dead)

        self.broadcast_total += 1
        return delivered

    def stats(self) -> Dict[str, Any]:
        return {
            "activeConnections": len(self.connections),
            "broadcastTotal": self.broadcast_total,
            "droppedConnections": self.dropped_connections,
        }
