"""
Shutdown coordinator that orchestrates graceful shutdown of the run.

Manages signal handlers, watches the critical task (the scheduler run), and
executes registered shutdown handlers in priority order.
"""

import asyncio
import signal
from typing import Dict, List, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownCoordinator:
    """
    Coordinates graceful shutdown of multiple components.

    Example:
        coordinator = ShutdownCoordinator()
        coordinator.register(SchedulerShutdownHandler(scheduler, task))

        coordinator.setup_signal_handlers(loop)
        coordinator.watch(task)
        await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
    """

    def __init__(self, timeout_per_handler: float = 5.0, total_timeout: float = 15.0):
        """
        Args:
            timeout_per_handler: Timeout for each individual handler (seconds)
            total_timeout: Total timeout for entire shutdown sequence (seconds)
        """
        self._handlers: List = []
        self._shutdown_event: Optional[asyncio.Event] = None
        self._watched: List[asyncio.Task] = []
        self._installed: List[signal.Signals] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timeout_per_handler = timeout_per_handler
        self._total_timeout = total_timeout
        self._shutdown_trigger: Dict[str, Optional[str]] = {"reason": None}

    @property
    def reason(self) -> Optional[str]:
        return self._shutdown_trigger["reason"]

    def register(self, handler) -> None:
        """
        Register a shutdown handler.

        Handler must have:
        - shutdown_priority property (int)
        - async shutdown() method
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    def watch(self, task: asyncio.Task) -> None:
        """Treat task as critical: its completion triggers shutdown."""
        self._watched.append(task)

    def trigger(self, reason: str) -> None:
        """Request shutdown programmatically."""
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        if self._shutdown_trigger["reason"] is None:
            self._shutdown_trigger["reason"] = reason
        self._shutdown_event.set()

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Install SIGINT (Ctrl+C) and SIGTERM handlers on the running loop.

        On platforms without loop.add_signal_handler (Windows), falls back to
        signal.signal and hands the event back to the loop thread-safely.
        """
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        self._loop = loop

        def signal_handler(sig: signal.Signals) -> None:
            log.info(f"Signal {sig.name} received → triggering shutdown")
            self.trigger(sig.name)

        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, signal_handler, sig)
                self._installed.append(sig)
            except NotImplementedError:
                signal.signal(sig, lambda s, _frame: loop.call_soon_threadsafe(signal_handler, signal.Signals(s)))

        log.debug("Signal handlers installed (SIGINT, SIGTERM)")

    def remove_signal_handlers(self) -> None:
        if self._loop is None:
            return
        for sig in self._installed:
            self._loop.remove_signal_handler(sig)
        self._installed = []

    async def wait_for_shutdown(self) -> None:
        """
        Return when a shutdown signal arrives or a watched task finishes.

        Raises:
            RuntimeError: If signal handlers weren't setup
        """
        if self._shutdown_event is None:
            raise RuntimeError("Call setup_signal_handlers() first")

        shutdown_waiter = asyncio.ensure_future(self._shutdown_event.wait())
        try:
            done, _pending = await asyncio.wait(
                {shutdown_waiter, *self._watched},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if not shutdown_waiter.done():
                shutdown_waiter.cancel()

        for task in done:
            if task is shutdown_waiter:
                continue
            if task.cancelled():
                self._shutdown_trigger["reason"] = self.reason or "Task cancelled"
            elif task.exception() is not None:
                self._shutdown_trigger["reason"] = self.reason or f"Task failure: {task.exception()}"
            else:
                self._shutdown_trigger["reason"] = self.reason or "Task completed"

    async def shutdown_all(self) -> None:
        """
        Execute graceful shutdown of all handlers in priority order.

        Handlers are called in descending priority order (highest first).
        Each handler has its own timeout and the whole sequence a global one;
        a failing handler is logged and the sequence continues.
        """
        log.info("Initiating graceful shutdown sequence...", reason=self.reason or "UNKNOWN")

        sorted_handlers = sorted(self._handlers, key=lambda h: h.shutdown_priority, reverse=True)
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        for handler in sorted_handlers:
            handler_name = handler.__class__.__name__

            elapsed = loop.time() - start_time
            if elapsed > self._total_timeout:
                log.error(f"Total shutdown timeout exceeded ({elapsed:.1f}s > {self._total_timeout}s)")
                break

            try:
                log.debug(f"Shutting down {handler_name} (priority={handler.shutdown_priority})...")
                await asyncio.wait_for(handler.shutdown(), timeout=self._timeout_per_handler)
                log.debug(f"{handler_name} shutdown complete")
            except asyncio.TimeoutError:
                log.error(f"{handler_name} shutdown timeout ({self._timeout_per_handler}s)")
            except Exception as e:
                log.error(f"Error shutting down {handler_name}: {e}")

        self.remove_signal_handlers()
        log.info("Shutdown sequence complete")
