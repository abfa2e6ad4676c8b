from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine, Dict, Optional, Sequence, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from utils.timeutil import utcnow

from .fetch import FetchOrchestrator
from .notifier import ChangeNotifier
from .sports import SPORT_ORDER
from .state import FULL_REFRESH, RefreshState

logger = logging.getLogger("oddscache.scheduler")

REFRESH_JOB_ID = "odds_refresh"


class RefreshScheduler:
    """IDLE/REFRESHING state machine plus the periodic interval job.

    A trigger that finds its scope busy is dropped, never queued. Started
    refreshes always run to completion; `stop()` only shuts the timer down.
    """

    def __init__(
        self,
        orchestrator: FetchOrchestrator,
        state: RefreshState,
        *,
        notifier: Optional[ChangeNotifier] = None,
        order: Sequence[str] = SPORT_ORDER,
        interval_seconds: float = 600,
        sport_payload: Optional[Callable[[str], Dict[str, Any]]] = None,
        status_payload: Optional[Callable[[], Dict[str, Any]]] = None,
    ):
        self.orchestrator = orchestrator
        self.state = state
        self.notifier = notifier or ChangeNotifier()
        self.order = tuple(order)
        self.interval_seconds = interval_seconds
        self._sport_payload = sport_payload or (lambda sport: {"sport": sport})
        self._status_payload = status_payload or self.state.to_dict
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def can_start(self, kind: str) -> bool:
        return self.state.can_begin(kind)

    async def _refresh_sport(self, sport: str) -> None:
        try:
            await self.orchestrator.refresh_sport(sport)
        except Exception as e:
            logger.exception("[Cache] Refresh error for %s", sport)
            self.state.record_error(f"{sport}: {e}")

    async def _run_full(self) -> int:
        calls_before = self.orchestrator.budget.total_calls
        for sport in self.order:
            await self._refresh_sport(sport)
            await self.notifier.emit(f"{sport}Update", self._sport_payload(sport), topic=sport)
        return self.orchestrator.budget.total_calls - calls_before

    async def trigger_refresh(self) -> bool:
        """Full refresh of every sport; False when dropped as already running."""
        if not self.state.try_begin(FULL_REFRESH):
            logger.info("[Cache] Already refreshing, skipping...")
            return False
        logger.info("========== STARTING FULL REFRESH ==========")
        try:
            calls = await self.notifier.wrap(
                self._run_full,
                start="refreshStart",
                complete="refreshComplete",
                start_data={"type": FULL_REFRESH},
                result_data=lambda used: {"type": FULL_REFRESH, "apiCalls": used, "status": self._status_payload()},
                release=lambda: self.state.end(FULL_REFRESH),
            )
            logger.info("========== REFRESH COMPLETE ==========")
            logger.info("[Cache] API calls this refresh: %d", calls)
        except Exception as e:
            logger.exception("[Cache] Refresh error")
            self.state.record_error(str(e))
        finally:
            self.state.end(FULL_REFRESH)
        return True

    async def trigger_scoped(self, sport: str) -> bool:
        """Refresh a single sport under the shared guard."""
        self.orchestrator.config(sport)
        if not self.state.try_begin(sport):
            logger.info("[Cache] %s refresh blocked by a running refresh, skipping...", sport)
            return False
        try:
            await self.notifier.wrap(
                lambda: self._refresh_sport(sport),
                start="refreshStart",
                complete=f"{sport}Update",
                topic=sport,
                start_data={"type": sport},
                result_data=lambda _: self._sport_payload(sport),
                release=lambda: self.state.end(sport),
            )
        except Exception as e:
            logger.exception("[Cache] Refresh error for %s", sport)
            self.state.record_error(f"{sport}: {e}")
        finally:
            self.state.end(sport)
        return True

    def _spawn(self, coro: Coroutine[Any, Any, bool], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def submit(self, kind: str = FULL_REFRESH) -> asyncio.Task:
        """Start a refresh in the background and hand back its task."""
        if kind == FULL_REFRESH:
            return self._spawn(self.trigger_refresh(), "odds_refresh_all")
        self.orchestrator.config(kind)
        return self._spawn(self.trigger_scoped(kind), f"odds_refresh_{kind}")

    async def wait_idle(self) -> None:
        """Wait for every refresh started through `submit` to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _scheduled_refresh(self) -> None:
        """Interval job body: announce the tick, then run a full refresh if the guard allows."""
        accepted = self.can_start(FULL_REFRESH)
        logger.info("[Scheduler] Starting scheduled refresh at %s", utcnow().isoformat())
        await self.notifier.emit(
            "scheduledRefresh",
            {"at": utcnow(), "intervalSeconds": self.interval_seconds, "accepted": accepted},
        )
        if not accepted:
            logger.info("[Scheduler] Refresh already in progress, skipping tick")
            return
        # shutdown cancels running jobs; the refresh itself must finish
        await asyncio.shield(self.submit(FULL_REFRESH))

    def start(self, *, run_immediately: bool = True) -> None:
        if self.running:
            return
        job_kwargs: Dict[str, Any] = {}
        if run_immediately:
            logger.info("[Startup] Starting initial data fetch...")
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self._scheduled_refresh,
            "interval",
            seconds=self.interval_seconds,
            id=REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            **job_kwargs,
        )
        self._scheduler.start()
        logger.info("Refresh scheduler started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Refresh scheduler stopped")
