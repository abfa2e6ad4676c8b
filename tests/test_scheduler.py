"""
tests/test_scheduler.py

Purpose:
    Refresh scheduler single-flight guard, scoped refresh isolation, error
    containment, lifecycle events and the periodic timer.
"""

from __future__ import annotations

import asyncio

import pytest

from cache.scheduler import REFRESH_JOB_ID

from conftest import RecordingPublisher, build_cache


async def _wait_for_calls(client, n: int = 1) -> None:
    for _ in range(200):
        if len(client.calls) >= n:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("refresh never reached the upstream client")


@pytest.mark.asyncio
async def test_trigger_while_refreshing_is_dropped(nba_client):
    cache = build_cache(nba_client)
    nba_client.gate = asyncio.Event()

    first = asyncio.create_task(cache.scheduler.trigger_refresh())
    await _wait_for_calls(nba_client)
    assert cache.state.is_refreshing
    calls_before = len(nba_client.calls)

    assert await cache.scheduler.trigger_refresh() is False
    assert await cache.scheduler.trigger_scoped("nba") is False
    assert len(nba_client.calls) == calls_before
    assert cache.store.event_count("nba") == 0

    nba_client.gate.set()
    assert await first is True
    assert not cache.state.is_refreshing
    assert cache.store.event_count("nba") == 3


@pytest.mark.asyncio
async def test_full_refresh_blocked_while_scoped_runs(nba_client):
    cache = build_cache(nba_client)
    nba_client.gate = asyncio.Event()

    scoped = asyncio.create_task(cache.scheduler.trigger_scoped("nba"))
    await _wait_for_calls(nba_client)

    assert cache.scheduler.can_start("football")
    assert not cache.scheduler.can_start("all")
    assert await cache.scheduler.trigger_refresh() is False

    nba_client.gate.set()
    assert await scoped is True
    assert cache.scheduler.can_start("all")


@pytest.mark.asyncio
async def test_scoped_nba_refresh_leaves_football_untouched(nba_client):
    publisher = RecordingPublisher()
    cache = build_cache(nba_client, publish=publisher)

    assert await cache.scheduler.trigger_scoped("nba") is True

    assert cache.store.events_updated("nba", "nba") is not None
    assert cache.store.odds_updated("nba") is not None
    assert cache.store.events_updated_by_league("football") == {}
    assert cache.store.odds_updated("football") is None
    assert not [c for c in nba_client.calls if c[0] == "/fixtures"]

    names = [n for n in publisher.names() if n != "oddsUpdate"]
    assert names == ["refreshStart", "nbaUpdate"]
    start = publisher.events[0]
    assert start == ("refreshStart", {"type": "nba"}, "nba")
    update = publisher.events[-1]
    assert update[2] == "nba"
    assert update[1]["events"]["count"] == 3


@pytest.mark.asyncio
async def test_full_refresh_emits_lifecycle_in_order(nba_client):
    publisher = RecordingPublisher()
    cache = build_cache(nba_client, publish=publisher)

    assert await cache.scheduler.trigger_refresh() is True

    names = [n for n in publisher.names() if n != "oddsUpdate"]
    assert names == ["refreshStart", "nbaUpdate", "footballUpdate", "refreshComplete"]
    complete = publisher.events[-1][1]
    assert complete["apiCalls"] == len(nba_client.calls)
    assert complete["status"]["isRefreshing"] is False
    assert complete["status"]["refreshing"] == []
    assert cache.store.event_count("football") == 2
    assert not cache.state.is_refreshing


@pytest.mark.asyncio
async def test_errors_mid_cycle_are_recorded_not_raised(nba_client, monkeypatch):
    cache = build_cache(nba_client)
    real_refresh = cache.orchestrator.refresh_sport

    async def _refresh(sport):
        if sport == "nba":
            raise RuntimeError("boom")
        return await real_refresh(sport)

    monkeypatch.setattr(cache.orchestrator, "refresh_sport", _refresh)

    assert await cache.scheduler.trigger_refresh() is True
    assert cache.state.last_error.message == "nba: boom"
    assert not cache.state.is_refreshing
    assert cache.store.event_count("football") == 2


@pytest.mark.asyncio
async def test_submit_returns_task_handle(nba_client):
    cache = build_cache(nba_client)

    task = cache.scheduler.submit("football")
    assert isinstance(task, asyncio.Task)
    assert await task is True
    assert cache.store.event_count("football") == 2

    with pytest.raises(KeyError):
        cache.scheduler.submit("tennis")


@pytest.mark.asyncio
async def test_timer_emits_scheduled_refresh(nba_client):
    publisher = RecordingPublisher()
    cache = build_cache(nba_client, publish=publisher, refresh_interval_seconds=0.05)

    cache.scheduler.start(run_immediately=False)
    assert cache.scheduler.running
    job = cache.scheduler._scheduler.get_job(REFRESH_JOB_ID)
    assert job.max_instances == 1
    assert job.coalesce is True
    await asyncio.sleep(0.12)
    await cache.scheduler.stop()
    await cache.scheduler.wait_idle()

    assert not cache.scheduler.running
    assert "scheduledRefresh" in publisher.names()
    assert cache.store.event_count("nba") == 3


@pytest.mark.asyncio
async def test_start_runs_initial_refresh(nba_client):
    cache = build_cache(nba_client, refresh_interval_seconds=3600)

    cache.scheduler.start()
    await _wait_for_calls(nba_client)
    await cache.scheduler.wait_idle()
    await cache.scheduler.stop()

    assert cache.store.event_count("nba") == 3
    assert cache.store.odds_count("nba") == 3


@pytest.mark.asyncio
async def test_scheduled_tick_is_skipped_while_refreshing(nba_client):
    publisher = RecordingPublisher()
    cache = build_cache(nba_client, publish=publisher)
    assert cache.state.try_begin("nba")

    await cache.scheduler._scheduled_refresh()

    assert publisher.events[-1][0] == "scheduledRefresh"
    assert publisher.events[-1][1]["accepted"] is False
    assert nba_client.calls == []
    assert cache.store.event_count("nba") == 0

    cache.state.end("nba")
    await cache.scheduler._scheduled_refresh()
    assert publisher.names()[-2:] == ["footballUpdate", "refreshComplete"]
    assert [e[1]["accepted"] for e in publisher.events if e[0] == "scheduledRefresh"] == [False, True]


@pytest.mark.asyncio
async def test_stop_lets_a_started_refresh_finish(nba_client):
    cache = build_cache(nba_client, refresh_interval_seconds=3600)
    nba_client.gate = asyncio.Event()

    cache.scheduler.start()
    await _wait_for_calls(nba_client)
    await cache.scheduler.stop()
    assert not cache.scheduler.running

    nba_client.gate.set()
    await cache.scheduler.wait_idle()
    assert cache.store.event_count("nba") == 3
    assert not cache.state.is_refreshing
