"""
Scheduler — fixed-rate simulate → render → transmit loop.

State machine: IDLE → RUNNING → STOPPED (one run per instance).

Each tick runs physics, rendering and transmission synchronously, then
waits for the next deadline. The wait is the only suspension point, so a
stop request never lands mid-render or mid-transmit: it either interrupts
the wait or is seen at the next tick boundary.

Tick rate:
    fps = min(config.fps, sink.max_fps, config.fps_ceiling)

sink.max_fps is the transport ceiling (serial link budget for the LED
Matrix, a fixed cap for the terminal); config.fps_ceiling caps it further
at the rate a user observed on their hardware.
"""

from __future__ import annotations
import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, Optional

from engine.frame_renderer import FrameRenderer
from engine.game_state import GameState
from hardware.matrix.sink_interface import IFrameSink
from models.config import GameConfig
from models.enums import SchedulerState, Team
from models.errors import DeviceError
from models.frame import TickStatus
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SCHEDULER)


class Scheduler:
    """
    Drives one run of the game into a frame sink.

    Usage:
        scheduler = Scheduler(config, sink)
        task = asyncio.create_task(scheduler.run())
        ...
        scheduler.request_stop()
        await task
    """

    def __init__(
        self,
        config: GameConfig,
        sink: IFrameSink,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clear_on_stop: bool = True,
    ):
        """
        Args:
            config: Validated run configuration (read-only)
            sink: Frame consumer selected by the caller
            clock: Monotonic time source in seconds
            sleep: Replacement for the end-of-tick wait (mocked-time tests);
                   by default the wait is interrupted by request_stop()
            clear_on_stop: Blank the panels after a normal stop
        """
        self.config = config
        self.sink = sink
        self.clear_on_stop = clear_on_stop
        self._clock = clock
        self._sleep = sleep

        self.fps = self.effective_fps(config, sink)
        self.period = 1.0 / self.fps

        self.state = SchedulerState.IDLE
        self.game: Optional[GameState] = None

        self._stop_requested = False
        self._stop_event: Optional[asyncio.Event] = None

        # Metrics
        self.frames_sent = 0
        self.late_ticks = 0
        self.frame_times: Deque[float] = deque(maxlen=300)

        if self.fps < config.fps:
            log.warn(
                "Target FPS above sink ceiling, clamping",
                requested=config.fps,
                ceiling=self.fps,
            )

    @staticmethod
    def effective_fps(config: GameConfig, sink: IFrameSink) -> int:
        fps = min(config.fps, sink.max_fps)
        if config.fps_ceiling is not None:
            fps = min(fps, config.fps_ceiling)
        return max(1, fps)

    # === Control API ===

    def request_stop(self) -> None:
        """Ask the loop to stop at the next tick boundary."""
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    # === Lifecycle ===

    async def run(self, max_frames: Optional[int] = None) -> GameState:
        """
        Run until request_stop() (or max_frames ticks).

        Raises:
            DeviceError: the sink failed; the loop is stopped
        """
        if self.state is not SchedulerState.IDLE:
            raise RuntimeError(f"Scheduler already used (state={self.state.name})")

        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()

        self.game = GameState.new(self.config)
        renderer = FrameRenderer.from_config(self.config)
        self.state = SchedulerState.RUNNING

        log.info(f"Render loop @ {self.fps} FPS (period={self.period * 1000:.2f}ms)")

        try:
            self.sink.open()
            try:
                await self._loop(self.game, renderer, max_frames)
                if self.clear_on_stop:
                    self.sink.clear()
            finally:
                self.sink.close()
        except DeviceError as ex:
            log.error(f"Device failure, stopping: {ex.message}", **ex.details)
            raise
        finally:
            self.state = SchedulerState.STOPPED
            log.info(
                "Scheduler stopped",
                frames_sent=self.frames_sent,
                late_ticks=self.late_ticks,
            )

        return self.game

    # === Core loop ===

    async def _loop(self, game: GameState, renderer: FrameRenderer, max_frames: Optional[int]) -> None:
        assert self._stop_event is not None
        next_deadline = self._clock()

        while not self._stop_event.is_set():
            if max_frames is not None and self.frames_sent >= max_frames:
                break

            tick_start = self._clock()
            self._tick(game, renderer, tick_start)
            compute = self._clock() - tick_start

            next_deadline += self.period
            now = self._clock()
            delay = next_deadline - now
            if delay < -self.period:
                # More than a whole period behind: resync instead of bursting
                self.late_ticks += 1
                next_deadline = now
                delay = 0.0
            delay = max(0.0, delay)

            if self.config.debug:
                log.debug(
                    "Tick timing",
                    frame=game.frame,
                    compute_ms=f"{compute * 1000:.2f}",
                    sleep_ms=f"{delay * 1000:.2f}",
                )

            await self._wait(delay)

    def _tick(self, game: GameState, renderer: FrameRenderer, tick_start: float) -> None:
        game.step(self.period)
        frames = renderer.render(game.grid, game.balls)

        scores = game.scores()
        self.sink.update_status(TickStatus(
            frame=game.frame,
            day_score=scores[Team.DAY],
            night_score=scores[Team.NIGHT],
            fps_target=self.fps,
            fps_actual=self.get_actual_fps(),
            compute_ms=(self._clock() - tick_start) * 1000,
        ))
        self.sink.send(frames)

        self.frames_sent += 1
        self.frame_times.append(self._clock())

    async def _wait(self, delay: float) -> None:
        if self._sleep is not None:
            await self._sleep(delay)
            return

        assert self._stop_event is not None
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    # === Metrics ===

    def get_actual_fps(self) -> float:
        if len(self.frame_times) < 2:
            return 0.0
        duration = self.frame_times[-1] - self.frame_times[0]
        if duration <= 0:
            return 0.0
        return (len(self.frame_times) - 1) / duration

    def get_metrics(self) -> Dict:
        return {
            "state": self.state.name,
            "fps_target": self.fps,
            "fps_actual": self.get_actual_fps(),
            "frames_sent": self.frames_sent,
            "late_ticks": self.late_ticks,
        }

    def __repr__(self) -> str:
        return (
            f"Scheduler(state={self.state.name}, fps={self.get_actual_fps():.1f}/{self.fps}, "
            f"sent={self.frames_sent}, late={self.late_ticks})"
        )
