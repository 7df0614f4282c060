"""End-to-end tests for the worker orchestration."""

import asyncio

import pytest
from structlog.testing import capture_logs

from conftest import FakePublisher, FakeSession
from src.core.bridge import Bridge
from src.core.models import DeviceClass


def _bridge(settings, sessions, publishers):
    return Bridge(
        settings,
        session_factory=lambda target: sessions[target.device_class],
        publisher_factory=lambda settings, target: publishers[target.device_class],
    )


@pytest.mark.asyncio
async def test_workers_run_concurrently(settings, pfsense_sample, avtech_sample):
    """Test both workers complete poll-decode-publish cycles."""
    sessions = {
        DeviceClass.PFSENSE: FakeSession([pfsense_sample]),
        DeviceClass.AVTECH: FakeSession([avtech_sample]),
    }
    publishers = {DeviceClass.PFSENSE: FakePublisher(), DeviceClass.AVTECH: FakePublisher()}
    bridge = _bridge(settings, sessions, publishers)

    await asyncio.wait_for(bridge.run(max_ticks=3), timeout=5)

    assert len(publishers[DeviceClass.PFSENSE].envelopes) == 3
    assert len(publishers[DeviceClass.AVTECH].envelopes) == 3
    assert bridge.fatal is None


@pytest.mark.asyncio
async def test_failing_worker_is_isolated(settings, pfsense_sample):
    """Test one worker's startup failure leaves the other running."""
    settings = settings.model_copy(update={"startup_failure_policy": "isolate"})
    sessions = {
        DeviceClass.PFSENSE: FakeSession([pfsense_sample]),
        DeviceClass.AVTECH: FakeSession(connect_failures=100),
    }
    publishers = {DeviceClass.PFSENSE: FakePublisher(), DeviceClass.AVTECH: FakePublisher()}
    bridge = _bridge(settings, sessions, publishers)

    await asyncio.wait_for(bridge.run(max_ticks=5), timeout=5)

    assert len(publishers[DeviceClass.PFSENSE].envelopes) == 5
    assert publishers[DeviceClass.AVTECH].envelopes == []
    assert bridge.fatal is None


@pytest.mark.asyncio
async def test_poll_failures_do_not_affect_other_worker(settings, pfsense_sample):
    """Test a worker whose reads keep failing does not slow the other."""
    sessions = {
        DeviceClass.PFSENSE: FakeSession([pfsense_sample]),
        DeviceClass.AVTECH: FakeSession([None]),
    }
    publishers = {DeviceClass.PFSENSE: FakePublisher(), DeviceClass.AVTECH: FakePublisher()}
    bridge = _bridge(settings, sessions, publishers)

    await asyncio.wait_for(bridge.run(max_ticks=4), timeout=5)

    assert len(publishers[DeviceClass.PFSENSE].envelopes) == 4
    assert sessions[DeviceClass.AVTECH].polls == 4
    assert publishers[DeviceClass.AVTECH].envelopes == []


@pytest.mark.asyncio
async def test_exit_policy_stops_everything(settings, pfsense_sample):
    """Test the default policy records the fatal error and stops all workers."""
    sessions = {
        DeviceClass.PFSENSE: FakeSession([pfsense_sample]),
        DeviceClass.AVTECH: FakeSession(connect_failures=100),
    }
    publishers = {DeviceClass.PFSENSE: FakePublisher(), DeviceClass.AVTECH: FakePublisher()}
    bridge = _bridge(settings, sessions, publishers)

    await asyncio.wait_for(bridge.run(), timeout=5)

    assert bridge.fatal is not None
    assert bridge.fatal.target.startswith("avtech")
    assert sessions[DeviceClass.PFSENSE].closed
    assert publishers[DeviceClass.PFSENSE].disconnected


@pytest.mark.asyncio
async def test_stop_is_graceful(settings, pfsense_sample, avtech_sample):
    """Test stop ends an unbounded run without a fatal status."""
    sessions = {
        DeviceClass.PFSENSE: FakeSession([pfsense_sample]),
        DeviceClass.AVTECH: FakeSession([avtech_sample]),
    }
    publishers = {DeviceClass.PFSENSE: FakePublisher(), DeviceClass.AVTECH: FakePublisher()}
    bridge = _bridge(settings, sessions, publishers)

    task = asyncio.create_task(bridge.run())
    await asyncio.sleep(0.05)
    bridge.stop()
    await asyncio.wait_for(task, timeout=1)

    assert bridge.fatal is None
    assert all(worker.ticks >= 1 for worker in bridge.workers)


@pytest.mark.asyncio
async def test_stop_during_startup_backoff_is_not_an_error(settings, pfsense_sample):
    """Test stopping while a worker waits to reconnect is logged as a normal stop."""
    settings = settings.model_copy(
        update={"connect_attempts": 3, "connect_backoff_initial": 5.0, "connect_backoff_max": 5.0}
    )
    sessions = {
        DeviceClass.PFSENSE: FakeSession([pfsense_sample]),
        DeviceClass.AVTECH: FakeSession(connect_failures=100),
    }
    publishers = {DeviceClass.PFSENSE: FakePublisher(), DeviceClass.AVTECH: FakePublisher()}
    bridge = _bridge(settings, sessions, publishers)

    with capture_logs() as logs:
        task = asyncio.create_task(bridge.run())
        await asyncio.sleep(0.05)
        bridge.stop()
        await asyncio.wait_for(task, timeout=1)

    assert bridge.fatal is None
    assert not [entry for entry in logs if entry["event"] == "Worker failed to start"]
    stopped = [entry for entry in logs if entry["event"] == "Worker stopped during startup"]
    assert len(stopped) == 1
    assert stopped[0]["log_level"] == "info"
    assert stopped[0]["target"] == "avtech"
