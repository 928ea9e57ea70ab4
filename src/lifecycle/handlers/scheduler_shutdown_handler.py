"""
Scheduler shutdown handler.

Stops the render loop at a tick boundary so the Scheduler can blank and
close its sink before the process exits.
"""

from __future__ import annotations
import asyncio

from engine.scheduler import Scheduler
from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class SchedulerShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the Scheduler run task.

    Requests a stop and waits for the run to wind down (clear + close of the
    sink happen inside Scheduler.run). If the task does not finish within
    grace_period it is cancelled; the sink is still closed by run()'s
    finally block.
    """

    def __init__(self, scheduler: Scheduler, task: asyncio.Task, grace_period: float = 2.0):
        self.scheduler = scheduler
        self.task = task
        self.grace_period = grace_period

    @property
    def shutdown_priority(self) -> int:
        return 120  # stop rendering first

    async def shutdown(self) -> None:
        if self.task.done():
            log.debug("Scheduler already stopped")
            return

        log.info("Stopping scheduler...")
        self.scheduler.request_stop()

        done, _ = await asyncio.wait({self.task}, timeout=self.grace_period)
        if done:
            log.debug("Scheduler stopped cleanly", frames_sent=self.scheduler.frames_sent)
            return

        log.warn(f"Scheduler did not stop within {self.grace_period}s, cancelling")
        self.task.cancel()
        await asyncio.gather(self.task, return_exceptions=True)
