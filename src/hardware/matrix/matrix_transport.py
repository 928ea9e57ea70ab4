# hardware/matrix/matrix_transport.py
"""
MatrixTransport - IFrameSink for Framework LED Matrix modules
===============================================================
Encodes one FrameBuffer per module and writes it to that module's serial
link.

Features:
- panel i only ever receives frames[i]
- one write() per module per frame, so a frame is either fully handed to
  the link or reported as a DeviceError
- the first write after open() carries the BRIGHTNESS command together with
  the frame, so a module never ends up with brightness set but no frame
- greyscale mode stages only the columns that changed since the last
  successful write (optimisation only; the cache is dropped on any error)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from hardware.matrix import protocol
from hardware.matrix.sink_interface import ISerialLink
from models.enums import MatrixEncoding
from models.errors import DeviceError, RenderError
from models.frame import FrameBuffer, TickStatus
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TRANSPORT)

STATUS_LOG_EVERY = 10


@dataclass
class MatrixModule:
    """Per-module transmit state."""
    index: int
    link: ISerialLink
    last_columns: Optional[List[bytes]] = None
    last_bitmap: Optional[bytes] = None
    configured: bool = False

    def invalidate(self) -> None:
        self.last_columns = None
        self.last_bitmap = None
        self.configured = False


@dataclass
class TransportStats:
    frames_sent: int = 0
    frames_skipped: int = 0
    bytes_sent: int = 0
    errors: int = 0
    per_module_bytes: List[int] = field(default_factory=list)


class MatrixTransport:
    """
    Usage:
        transport = MatrixTransport(connect=lambda: links, panel_width=9, panel_height=34)
        transport.open()
        transport.send([frame])
        transport.close()
    """

    def __init__(
        self,
        connect: Callable[[], Sequence[ISerialLink]],
        panel_width: int,
        panel_height: int,
        panel_count: int = 1,
        encoding: MatrixEncoding = MatrixEncoding.GREYSCALE,
        brightness: int = 100,
        baud_rate: int = protocol.BAUD_RATE,
    ) -> None:
        self._connect = connect
        self.panel_width = panel_width
        self.panel_height = panel_height
        self.panel_count = panel_count
        self.encoding = encoding
        self.brightness = brightness
        self.baud_rate = baud_rate

        self.modules: List[MatrixModule] = []
        self.stats = TransportStats()

    # ==================== IFrameSink API ====================

    @property
    def max_fps(self) -> int:
        return protocol.estimated_max_fps(
            self.encoding, self.panel_width, self.panel_height, self.panel_count, self.baud_rate
        )

    @property
    def is_open(self) -> bool:
        return bool(self.modules)

    def open(self) -> None:
        if self.is_open:
            return

        links = list(self._connect())
        if len(links) != self.panel_count:
            for link in links:
                link.close()
            raise DeviceError(
                f"Expected {self.panel_count} LED Matrix module(s), got {len(links)}",
                expected=self.panel_count,
                found=len(links),
            )

        self.modules = [MatrixModule(index=i, link=link) for i, link in enumerate(links)]
        self.stats = TransportStats(per_module_bytes=[0] * len(links))
        log.info(
            "MatrixTransport opened",
            modules=", ".join(m.link.name for m in self.modules),
            encoding=self.encoding.value,
            max_fps=self.max_fps,
        )

    def send(self, frames: Sequence[FrameBuffer]) -> None:
        if not self.is_open:
            raise DeviceError("MatrixTransport is not open")
        if len(frames) != len(self.modules):
            raise RenderError(
                f"Got {len(frames)} frame(s) for {len(self.modules)} module(s)",
                frames=len(frames),
                modules=len(self.modules),
            )

        for module, frame in zip(self.modules, frames):
            self._check_geometry(frame)
            self._send_module(module, frame)

    def update_status(self, status: TickStatus) -> None:
        if status.frame % STATUS_LOG_EVERY == 0:
            log.info(
                "Matrix status",
                frame=status.frame,
                day=status.day_score,
                night=status.night_score,
                bytes_sent=self.stats.bytes_sent,
            )

    def clear(self) -> None:
        """Blank every module, bypassing the diff cache."""
        if not self.is_open:
            return
        blank = FrameBuffer.filled(self.panel_width, self.panel_height, 0)
        for module in self.modules:
            module.last_columns = None
            module.last_bitmap = None
            self._send_module(module, blank)
        log.info("LED Matrix cleared", modules=len(self.modules))

    def close(self) -> None:
        for module in self.modules:
            module.link.close()
            log.debug("Closed module", index=module.index, port=module.link.name)
        self.modules = []

    # ==================== Encoding ====================

    def _check_geometry(self, frame: FrameBuffer) -> None:
        if frame.width != self.panel_width or frame.height != self.panel_height:
            raise RenderError(
                "Frame does not match panel geometry",
                frame=f"{frame.width}x{frame.height}",
                panel=f"{self.panel_width}x{self.panel_height}",
            )

    def _encode(self, module: MatrixModule, frame: FrameBuffer):
        """Return (payload, cache update) for one module."""
        if self.encoding is MatrixEncoding.BW:
            bitmap = protocol.encode_bw_frame(frame)
            if module.configured and bitmap == module.last_bitmap:
                return b"", bitmap
            prefix = b"" if module.configured else protocol.encode_brightness(
                protocol.percent_to_level(self.brightness)
            )
            return prefix + bitmap, bitmap

        previous = module.last_columns if module.configured else None
        payload, columns = protocol.encode_grey_frame(frame, previous)
        if payload and not module.configured:
            # Per-cell values are already scaled; run the panel at full brightness.
            payload = protocol.encode_brightness(255) + payload
        return payload, columns

    def _send_module(self, module: MatrixModule, frame: FrameBuffer) -> None:
        payload, cache = self._encode(module, frame)

        if not payload:
            self.stats.frames_skipped += 1
            return

        try:
            module.link.write(payload)
        except DeviceError:
            module.invalidate()
            self.stats.errors += 1
            log.error("Frame write failed", module=module.index, port=module.link.name)
            raise

        module.configured = True
        if self.encoding is MatrixEncoding.BW:
            module.last_bitmap = cache
        else:
            module.last_columns = cache

        self.stats.frames_sent += 1
        self.stats.bytes_sent += len(payload)
        self.stats.per_module_bytes[module.index] += len(payload)

    def __repr__(self) -> str:
        return (
            f"MatrixTransport(modules={len(self.modules)}, encoding={self.encoding.value}, "
            f"sent={self.stats.frames_sent}, skipped={self.stats.frames_skipped})"
        )
