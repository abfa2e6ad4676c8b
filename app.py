
from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from cache import FOOTBALL, NBA, NOT_FETCHED, OddsCache, OddsSnapshot
from opticOdds import OpticOddsClient, configure_logging

from server.config import Settings
from server.filters import norm_token, parse_refresh_type, resolve_topics
from server.hub import Hub
from server.transform import joined_all_leagues, joined_league, joined_scope
from utils.timeutil import utcnow


class RefreshRequest(BaseModel):
    type: Optional[str] = None


def _odds_response(found) -> JSONResponse | Dict[str, Any]:
    if isinstance(found, OddsSnapshot):
        return found.to_dict()
    if found is NOT_FETCHED:
        return JSONResponse(status_code=404, content={"error": "Odds not yet fetched for this event"})
    return JSONResponse(status_code=404, content={"error": "Odds not found for this event"})


def create_app(settings: Optional[Settings] = None, *, client: Optional[OpticOddsClient] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)
    hub = Hub(settings)
    cache = OddsCache.from_settings(settings, client=client, publish=hub.broadcast)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.scheduler_enabled:
            cache.scheduler.start(run_immediately=settings.refresh_on_startup)
        try:
            yield
        finally:
            await cache.scheduler.stop()
            cache.client.close()

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.settings = settings
    app.state.cache = cache
    app.state.hub = hub

    @app.get("/health")
    async def health():
        return {"status": "ok", "timestamp": utcnow()}

    @app.get("/api/status")
    async def status():
        return {**cache.status(), "push": hub.stats()}

    # NBA

    @app.get("/api/nba/events")
    async def nba_events():
        return cache.events_view(NBA)

    @app.get("/api/nba/odds/{event_id}")
    async def nba_odds_for_event(event_id: str):
        return _odds_response(cache.get_odds(NBA, event_id))

    @app.get("/api/nba/odds")
    async def nba_odds():
        return cache.odds_view(NBA)

    @app.get("/api/nba/all")
    async def nba_all():
        return joined_scope(cache, NBA, cache.sports[NBA].leagues[0])

    # Football

    @app.get("/api/football/events")
    async def football_events(league: Optional[str] = Query(default=None)):
        return cache.events_view(FOOTBALL, norm_token(league) or None)

    @app.get("/api/football/events/{league}")
    async def football_league_events(league: str):
        return cache.events_view(FOOTBALL, norm_token(league))

    @app.get("/api/football/odds/{event_id}")
    async def football_odds_for_event(event_id: str):
        return _odds_response(cache.get_odds(FOOTBALL, event_id))

    @app.get("/api/football/odds")
    async def football_odds():
        return cache.odds_view(FOOTBALL)

    @app.get("/api/football/all/{league}")
    async def football_league_all(league: str):
        return joined_league(cache, FOOTBALL, norm_token(league))

    @app.get("/api/football/all")
    async def football_all():
        return joined_all_leagues(cache, FOOTBALL)

    # Admin

    @app.post("/api/admin/refresh", status_code=202)
    async def admin_refresh(payload: Optional[RefreshRequest] = None):
        try:
            kind = parse_refresh_type(payload.type if payload else None, cache.sports)
        except ValueError as e:
            return JSONResponse(status_code=422, content={"error": str(e)})
        accepted = cache.scheduler.can_start(kind)
        cache.scheduler.submit(kind)
        return {
            "message": "Refresh started" if accepted else "Refresh already in progress",
            "type": kind,
            "accepted": accepted,
        }

    @app.get("/api/admin/leagues")
    async def admin_leagues(sport: str = Query(default="soccer")):
        leagues = await cache.available_leagues(norm_token(sport))
        return {"sport": sport, "leagues": leagues, "count": len(leagues)}

    # Push channel

    async def handle_message(ws: WebSocket, data: Dict[str, Any]) -> None:
        kind = norm_token(data.get("type") or data.get("action"))
        body = data.get("data") if isinstance(data.get("data"), dict) else data
        try:
            if kind == "subscribe":
                topics = resolve_topics(body.get("sport"), cache.sports)
                await hub.subscribe(ws, topics)
                for topic in sorted(topics):
                    await hub.send(ws, "snapshot", cache.sport_snapshot(topic), topic=topic)
            elif kind == "unsubscribe":
                topics = resolve_topics(body.get("sport"), cache.sports)
                remaining = await hub.unsubscribe(ws, topics)
                await hub.send(ws, "subscriptions", {"topics": remaining})
            elif kind == "requestrefresh":
                if body is data:
                    requested = data.get("refreshType")
                else:
                    requested = body.get("refreshType") or body.get("type")
                refresh_kind = parse_refresh_type(requested, cache.sports)
                accepted = cache.scheduler.can_start(refresh_kind)
                cache.scheduler.submit(refresh_kind)
                await hub.send(ws, "refreshRequested", {"type": refresh_kind, "accepted": accepted})
            else:
                await hub.send(ws, "error", {"message": f"unsupported message type: {data.get('type')}"})
        except ValueError as e:
            await hub.send(ws, "error", {"message": str(e)})

    @app.websocket("/ws")
    async def stream(ws: WebSocket):
        await hub.connect(ws)
        try:
            await hub.send(ws, "status", cache.status())
            while True:
                msg = await ws.receive_text()
                try:
                    data = json.loads(msg)
                except ValueError:
                    data = None
                if not isinstance(data, dict):
                    await hub.send(ws, "error", {"message": "messages must be JSON objects"})
                    continue
                await handle_message(ws, data)
        except WebSocketDisconnect:
            pass
        finally:
            await hub.disconnect(ws)

    return app


settings = Settings()
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run("app:app", host="0.0.0.0", port=settings.port, reload=False)
