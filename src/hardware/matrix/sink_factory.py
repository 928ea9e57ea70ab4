# hardware/matrix/sink_factory.py

import sys
from typing import Optional, TextIO

from hardware.matrix.matrix_transport import MatrixTransport
from hardware.matrix.serial_link import find_matrix_devices, open_serial_links, select_devices
from hardware.matrix.sink_interface import IFrameSink
from hardware.matrix.terminal_sink import TerminalSink
from models.config import GameConfig
from models.enums import RunMode


def create_sink(mode: RunMode, config: GameConfig, stream: Optional[TextIO] = None) -> IFrameSink:
    """
    Pick the frame sink once, at startup.

    LIVE enumerates and opens the LED Matrix module(s) lazily on open(), so
    device errors surface when the Scheduler starts, not here.
    """
    if mode is RunMode.LIVE:
        def connect():
            devices = select_devices(find_matrix_devices(), config.dual_mode)
            return open_serial_links(devices, config.baud_rate, config.timeout_s)

        return MatrixTransport(
            connect=connect,
            panel_width=config.panel_width,
            panel_height=config.panel_height,
            panel_count=config.panel_count,
            encoding=config.encoding,
            brightness=config.brightness,
            baud_rate=config.baud_rate,
        )

    return TerminalSink(stream=stream or sys.stdout)
