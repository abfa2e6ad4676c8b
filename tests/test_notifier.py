"""
tests/test_notifier.py

Purpose:
    Change notifier publish contract: no-op without a publisher, ordered
    start/complete around an operation, release before the complete payload,
    and isolation from publisher failures.
"""

from __future__ import annotations

import pytest

from cache.notifier import ChangeNotifier

from conftest import RecordingPublisher


@pytest.mark.asyncio
async def test_emit_without_publisher_is_noop():
    notifier = ChangeNotifier()
    await notifier.emit("refreshStart", {"type": "all"})

    async def _op():
        return 7

    assert await notifier.wrap(_op, start="refreshStart", complete="refreshComplete") == 7


@pytest.mark.asyncio
async def test_wrap_emits_around_operation():
    publisher = RecordingPublisher()
    notifier = ChangeNotifier(publisher)
    seen_during: list[list[str]] = []

    async def _op():
        seen_during.append(publisher.names())
        return {"events": 3}

    result = await notifier.wrap(
        _op,
        start="refreshStart",
        complete="nbaUpdate",
        topic="nba",
        start_data={"type": "nba"},
        result_data=lambda r: {"count": r["events"]},
    )

    assert result == {"events": 3}
    assert seen_during == [["refreshStart"]]
    assert publisher.events == [
        ("refreshStart", {"type": "nba"}, "nba"),
        ("nbaUpdate", {"count": 3}, "nba"),
    ]


@pytest.mark.asyncio
async def test_release_runs_before_complete_payload_is_built():
    publisher = RecordingPublisher()
    notifier = ChangeNotifier(publisher)
    busy = {"value": True}

    async def _op():
        return None

    def _release():
        busy["value"] = False

    await notifier.wrap(
        _op,
        start="refreshStart",
        complete="refreshComplete",
        result_data=lambda _: {"busy": busy["value"]},
        release=_release,
    )
    assert publisher.events[-1] == ("refreshComplete", {"busy": False}, None)


@pytest.mark.asyncio
async def test_release_runs_when_operation_fails():
    publisher = RecordingPublisher()
    notifier = ChangeNotifier(publisher)
    released: list[bool] = []

    async def _op():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await notifier.wrap(_op, start="refreshStart", complete="refreshComplete", release=lambda: released.append(True))

    assert released == [True]
    assert publisher.names() == ["refreshStart"]


@pytest.mark.asyncio
async def test_publisher_failure_does_not_propagate():
    async def _broken(event, data, topic):
        raise ConnectionError("socket gone")

    notifier = ChangeNotifier(_broken)
    await notifier.emit("oddsUpdate", {"eventId": "E1"}, topic="nba")
