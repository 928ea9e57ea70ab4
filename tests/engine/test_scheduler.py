import asyncio
import io

import pytest

from engine.scheduler import Scheduler
from models.config import GameConfig
from models.enums import LogLevel, SchedulerState
from models.errors import DeviceError
from utils.logger import configure_logger


class TestTickRate:

    def test_period_for_32_fps(self, config, make_sink):
        scheduler = Scheduler(config, make_sink())

        assert scheduler.fps == 32
        assert scheduler.period == pytest.approx(0.03125)

    def test_clamped_to_sink_ceiling(self, config, make_sink):
        scheduler = Scheduler(config, make_sink(max_fps=15))

        assert scheduler.fps == 15

    def test_clamped_to_configured_ceiling(self, make_sink):
        config = GameConfig(fps=60, fps_ceiling=10)

        assert Scheduler(config, make_sink()).fps == 10


class TestRun:

    @pytest.mark.asyncio
    async def test_at_most_one_frame_per_period(self, config, make_sink, fake_clock):
        sink = make_sink(clock=fake_clock)
        scheduler = Scheduler(config, sink, clock=fake_clock, sleep=fake_clock.sleep)

        await scheduler.run(max_frames=40)

        in_first_second = [t for t in sink.send_times if t < 1.0]
        assert len(in_first_second) <= 32
        gaps = [b - a for a, b in zip(sink.send_times, sink.send_times[1:])]
        assert all(gap >= scheduler.period - 1e-9 for gap in gaps)

    @pytest.mark.asyncio
    async def test_sink_lifecycle(self, config, make_sink, fake_clock):
        sink = make_sink()
        scheduler = Scheduler(config, sink, clock=fake_clock, sleep=fake_clock.sleep)

        game = await scheduler.run(max_frames=5)

        assert sink.opened and sink.cleared and sink.closed
        assert len(sink.sent) == 5
        assert game.frame == 5
        assert scheduler.state is SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_status_accompanies_each_frame(self, config, make_sink, fake_clock):
        sink = make_sink()
        scheduler = Scheduler(config, sink, clock=fake_clock, sleep=fake_clock.sleep)

        await scheduler.run(max_frames=3)

        assert [s.frame for s in sink.statuses] == [1, 2, 3]
        assert all(s.day_score + s.night_score == 9 * 34 for s in sink.statuses)
        assert all(s.fps_target == 32 for s in sink.statuses)

    @pytest.mark.asyncio
    async def test_dual_mode_sends_two_frames(self, dual_config, make_sink, fake_clock):
        sink = make_sink()
        scheduler = Scheduler(dual_config, sink, clock=fake_clock, sleep=fake_clock.sleep)

        await scheduler.run(max_frames=2)

        assert all(len(frames) == 2 for frames in sink.sent)

    @pytest.mark.asyncio
    async def test_request_stop_ends_at_tick_boundary(self, config, make_sink):
        scheduler = None

        def stop_after_three(count):
            if count == 3:
                scheduler.request_stop()

        sink = make_sink(on_send=stop_after_three)
        scheduler = Scheduler(GameConfig(seed=1, fps=120), sink)

        await asyncio.wait_for(scheduler.run(), timeout=5.0)

        assert scheduler.frames_sent == 3
        assert sink.closed

    @pytest.mark.asyncio
    async def test_stop_before_run(self, config, make_sink):
        sink = make_sink()
        scheduler = Scheduler(config, sink)
        scheduler.request_stop()

        await scheduler.run()

        assert sink.sent == []
        assert sink.closed

    @pytest.mark.asyncio
    async def test_device_error_stops_loop(self, config, make_sink, fake_clock):
        sink = make_sink()
        sink.fail_on_send = 2
        scheduler = Scheduler(config, sink, clock=fake_clock, sleep=fake_clock.sleep)

        with pytest.raises(DeviceError):
            await scheduler.run(max_frames=10)

        assert len(sink.sent) == 2
        assert sink.closed
        assert not sink.cleared
        assert scheduler.state is SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_single_use(self, config, make_sink, fake_clock):
        scheduler = Scheduler(config, make_sink(), clock=fake_clock, sleep=fake_clock.sleep)
        await scheduler.run(max_frames=1)

        with pytest.raises(RuntimeError):
            await scheduler.run(max_frames=1)

    @pytest.mark.asyncio
    async def test_metrics(self, config, make_sink, fake_clock):
        scheduler = Scheduler(config, make_sink(), clock=fake_clock, sleep=fake_clock.sleep)

        await scheduler.run(max_frames=33)

        metrics = scheduler.get_metrics()
        assert metrics["frames_sent"] == 33
        assert metrics["state"] == "STOPPED"
        assert metrics["fps_actual"] == pytest.approx(32.0)


class TestDebugTiming:

    @pytest.mark.asyncio
    async def test_logs_compute_and_sleep_per_tick(self, make_sink, make_clock):
        stream = io.StringIO()
        configure_logger(LogLevel.DEBUG, use_colors=False, stream=stream)

        clock = make_clock()
        sink = make_sink(clock=clock)
        scheduler = Scheduler(GameConfig(seed=1, debug=True), sink, clock=clock, sleep=clock.sleep)
        await scheduler.run(max_frames=4)

        output = stream.getvalue()
        assert output.count("Tick timing") == 4
        assert output.count("compute_ms") >= 4
        assert output.count("sleep_ms") == 4

    @pytest.mark.asyncio
    async def test_debug_does_not_change_pacing(self, make_sink, make_clock):
        configure_logger(LogLevel.DEBUG, use_colors=False, stream=io.StringIO())

        send_times = []
        for debug in (False, True):
            clock = make_clock()
            sink = make_sink(clock=clock)
            scheduler = Scheduler(GameConfig(seed=1, debug=debug), sink, clock=clock, sleep=clock.sleep)
            await scheduler.run(max_frames=6)
            send_times.append(sink.send_times)

        assert send_times[0] == send_times[1]
