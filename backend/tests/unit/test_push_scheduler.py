"""
Unit tests for PushScheduler

Tests cover:
    - Successful and failed runs recorded for the status endpoint
    - Unexpected exceptions contained inside a run
    - Start/stop lifecycle and disabled scheduler
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from trackarr.services.delivery import PushOutcome
from trackarr.services.exceptions import RpcDeliveryError
from trackarr.services.structured_logging import get_trigger
from trackarr.workers.push_scheduler import PushScheduler


def make_pipeline(push=None):
    pipeline = MagicMock()
    pipeline.push = push or AsyncMock(
        return_value=PushOutcome(tracker_count=3, method="aria2.changeGlobalOption", result="OK")
    )
    return pipeline


@pytest.mark.asyncio
async def test_run_once_success():
    pipeline = make_pipeline()
    scheduler = PushScheduler(pipeline, interval=60)

    record = await scheduler.run_once()

    pipeline.push.assert_awaited_once_with(scheduled=True)
    assert record.success is True
    assert record.tracker_count == 3
    assert record.error is None
    assert record.finished_at is not None
    assert scheduler.last_run is record


@pytest.mark.asyncio
async def test_run_once_rpc_failure_recorded():
    pipeline = make_pipeline(AsyncMock(side_effect=RpcDeliveryError("Connection refused")))
    scheduler = PushScheduler(pipeline, interval=60)

    record = await scheduler.run_once()

    assert record.success is False
    assert "Connection refused" in record.error


@pytest.mark.asyncio
async def test_run_once_unexpected_exception_contained():
    pipeline = make_pipeline(AsyncMock(side_effect=ValueError("boom")))
    scheduler = PushScheduler(pipeline, interval=60)

    record = await scheduler.run_once()

    assert record.success is False
    assert record.error == "ValueError: boom"


@pytest.mark.asyncio
async def test_run_uses_scheduled_trigger_context():
    seen = {}

    async def push(scheduled):
        seen["trigger"] = get_trigger()
        return PushOutcome(tracker_count=0, method="addTrackers")

    scheduler = PushScheduler(make_pipeline(AsyncMock(side_effect=push)), interval=60)
    before = get_trigger()
    await scheduler.run_once()

    assert seen["trigger"] == "scheduled"
    assert get_trigger() == before


@pytest.mark.asyncio
async def test_start_runs_on_startup_and_stops():
    pipeline = make_pipeline()
    scheduler = PushScheduler(pipeline, interval=3600, run_on_startup=True)

    await scheduler.start()
    assert scheduler.is_running is True

    for _ in range(50):
        if pipeline.push.await_count:
            break
        await asyncio.sleep(0.01)

    await scheduler.stop()

    assert scheduler.is_running is False
    assert pipeline.push.await_count == 1
    assert scheduler.get_status()["run_count"] == 1


@pytest.mark.asyncio
async def test_disabled_scheduler_does_not_start():
    scheduler = PushScheduler(make_pipeline(), interval=3600, enabled=False)

    await scheduler.start()

    assert scheduler.is_running is False
    await scheduler.stop()


def test_zero_interval_disables():
    assert PushScheduler(make_pipeline(), interval=0).enabled is False


def test_status_before_any_run():
    status = PushScheduler(make_pipeline(), interval=120).get_status()

    assert status == {
        "running": False,
        "enabled": True,
        "interval": 120,
        "run_on_startup": False,
        "run_count": 0,
        "last_run": None,
    }
