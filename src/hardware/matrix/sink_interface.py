# hardware/matrix/sink_interface.py
"""
Frame sink protocols
====================
IFrameSink is the single capability the Scheduler renders into. Two
variants exist: MatrixTransport (LED Matrix over USB serial) and
TerminalSink (ASCII in the terminal). The CLI picks one at startup.

ISerialLink is the byte-level boundary MatrixTransport writes through.
"""

from __future__ import annotations
from typing import Protocol, Sequence

from models.frame import FrameBuffer, TickStatus


class IFrameSink(Protocol):
    """
    All implementations must provide:
    - max_fps: highest frame rate the sink can sustain
    - open: acquire the output (ports, terminal)
    - send: display one frame per panel, completely or not at all
    - update_status: optional per-tick status display
    - clear: blank every panel
    - close: release the output
    """

    @property
    def max_fps(self) -> int:
        ...

    def open(self) -> None:
        ...

    def send(self, frames: Sequence[FrameBuffer]) -> None:
        """
        Display frames[i] on panel i.
        Raises DeviceError if the output rejected the frame.
        """
        ...

    def update_status(self, status: TickStatus) -> None:
        ...

    def clear(self) -> None:
        ...

    def close(self) -> None:
        ...


class ISerialLink(Protocol):
    """Ordered byte sink for one LED Matrix module."""

    @property
    def name(self) -> str:
        ...

    def write(self, data: bytes) -> int:
        """Write all of data; return the number of bytes written."""
        ...

    def close(self) -> None:
        ...
