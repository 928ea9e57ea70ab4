"""
Tests for the shutdown coordinator and the scheduler shutdown handler.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from engine.scheduler import Scheduler
from lifecycle.handlers import SchedulerShutdownHandler
from lifecycle.shutdown_coordinator import ShutdownCoordinator
from models.config import GameConfig
from models.enums import SchedulerState


class RecordingHandler:

    def __init__(self, name, priority, calls, delay=0.0, fail=False):
        self.name = name
        self.priority = priority
        self.calls = calls
        self.delay = delay
        self.fail = fail

    @property
    def shutdown_priority(self) -> int:
        return self.priority

    async def shutdown(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError(f"{self.name} failed")
        self.calls.append(self.name)


def test_register_rejects_incomplete_handler():
    coordinator = ShutdownCoordinator()

    with pytest.raises(ValueError):
        coordinator.register(object())


@pytest.mark.asyncio
async def test_handlers_run_in_priority_order():
    calls = []
    coordinator = ShutdownCoordinator()
    coordinator.register(RecordingHandler("low", 10, calls))
    coordinator.register(RecordingHandler("high", 120, calls))
    coordinator.register(RecordingHandler("mid", 50, calls))

    await coordinator.shutdown_all()

    assert calls == ["high", "mid", "low"]


@pytest.mark.asyncio
async def test_slow_or_failing_handler_does_not_block_the_rest():
    calls = []
    coordinator = ShutdownCoordinator(timeout_per_handler=0.05)
    coordinator.register(RecordingHandler("slow", 100, calls, delay=1.0))
    coordinator.register(RecordingHandler("broken", 90, calls, fail=True))
    coordinator.register(RecordingHandler("last", 10, calls))

    await coordinator.shutdown_all()

    assert calls == ["last"]


@pytest.mark.asyncio
async def test_wait_requires_setup():
    coordinator = ShutdownCoordinator()

    with pytest.raises(RuntimeError):
        await coordinator.wait_for_shutdown()


@pytest.mark.asyncio
async def test_trigger_ends_wait():
    coordinator = ShutdownCoordinator()
    coordinator.setup_signal_handlers(asyncio.get_running_loop())

    asyncio.get_running_loop().call_later(0.01, coordinator.trigger, "SIGTERM")
    await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=2.0)

    assert coordinator.reason == "SIGTERM"
    coordinator.remove_signal_handlers()


@pytest.mark.asyncio
async def test_watched_task_completion_ends_wait():
    coordinator = ShutdownCoordinator()
    coordinator.setup_signal_handlers(asyncio.get_running_loop())

    async def short_run():
        await asyncio.sleep(0.01)

    coordinator.watch(asyncio.create_task(short_run()))
    await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=2.0)

    assert coordinator.reason == "Task completed"
    coordinator.remove_signal_handlers()


@pytest.mark.asyncio
async def test_watched_task_failure_is_reported():
    coordinator = ShutdownCoordinator()
    coordinator.setup_signal_handlers(asyncio.get_running_loop())

    async def failing_run():
        raise RuntimeError("device gone")

    task = asyncio.create_task(failing_run())
    coordinator.watch(task)
    await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=2.0)

    assert "device gone" in coordinator.reason
    assert isinstance(task.exception(), RuntimeError)
    coordinator.remove_signal_handlers()


@pytest.mark.asyncio
async def test_scheduler_handler_stops_running_scheduler(make_sink):
    sink = make_sink()
    scheduler = Scheduler(GameConfig(seed=3, fps=60), sink)
    task = asyncio.create_task(scheduler.run())
    await asyncio.sleep(0.05)

    handler = SchedulerShutdownHandler(scheduler, task)
    await handler.shutdown()

    assert task.done()
    assert scheduler.state is SchedulerState.STOPPED
    assert sink.cleared and sink.closed


@pytest.mark.asyncio
async def test_scheduler_handler_cancels_after_grace_period():
    scheduler = MagicMock()

    async def stuck():
        await asyncio.sleep(10)

    task = asyncio.create_task(stuck())
    handler = SchedulerShutdownHandler(scheduler, task, grace_period=0.01)

    await handler.shutdown()

    assert task.cancelled()
