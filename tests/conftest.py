"""
Shared fixtures: fake serial links, a fake clock and a recording frame sink.
"""

import pytest

from models.config import GameConfig, PhysicsParams
from models.enums import LogLevel
from models.errors import DeviceError
from utils.logger import configure_logger


class FakeSerialLink:
    """ISerialLink that records every write."""

    def __init__(self, name: str = "/dev/ttyACM0"):
        self.name = name
        self.writes = []
        self.closed = False
        self.fail_next = False

    def write(self, data: bytes) -> int:
        if self.fail_next:
            self.fail_next = False
            raise DeviceError(f"Write failed on {self.name}", port=self.name)
        self.writes.append(bytes(data))
        return len(data)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manual monotonic clock; sleep() advances it instead of waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


class RecordingSink:
    """IFrameSink that keeps every frame batch with the clock time it arrived."""

    def __init__(self, max_fps: int = 120, clock=None, on_send=None):
        self.max_fps = max_fps
        self.clock = clock
        self.on_send = on_send
        self.sent = []
        self.send_times = []
        self.statuses = []
        self.opened = False
        self.cleared = False
        self.closed = False
        self.fail_on_send = None

    def open(self):
        self.opened = True

    def send(self, frames):
        if self.fail_on_send is not None and len(self.sent) >= self.fail_on_send:
            raise DeviceError("LED Matrix disconnected", port="/dev/ttyACM0")
        self.sent.append(list(frames))
        if self.clock is not None:
            self.send_times.append(self.clock())
        if self.on_send is not None:
            self.on_send(len(self.sent))

    def update_status(self, status):
        self.statuses.append(status)

    def clear(self):
        self.cleared = True

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def reset_logger():
    """Point the logger back at the current stdout after each test."""
    yield
    configure_logger(LogLevel.INFO)


@pytest.fixture
def config():
    return GameConfig(seed=1234)


@pytest.fixture
def dual_config():
    return GameConfig(seed=1234, dual_mode=True)


@pytest.fixture
def no_bounce_physics():
    return PhysicsParams(base_speed=1.0, min_speed=0.5, max_speed=15.0, tile_bounce=False)


@pytest.fixture
def fake_link():
    return FakeSerialLink()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_link():
    return FakeSerialLink


@pytest.fixture
def make_sink():
    return RecordingSink


@pytest.fixture
def make_clock():
    return FakeClock
