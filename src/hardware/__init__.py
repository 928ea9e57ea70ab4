"""
Hardware Layer

Low-level device access only:

- LED Matrix serial links and enumeration (pyserial)
- Frame sinks (MatrixTransport for the modules, TerminalSink for simulation)
"""
from .matrix.sink_interface import IFrameSink, ISerialLink
from .matrix.matrix_transport import MatrixTransport
from .matrix.terminal_sink import TerminalSink
from .matrix.serial_link import SerialLink, MatrixDeviceInfo, find_matrix_devices
from .matrix.sink_factory import create_sink

__all__ = [
    "IFrameSink",
    "ISerialLink",
    "MatrixTransport",
    "TerminalSink",
    "SerialLink",
    "MatrixDeviceInfo",
    "find_matrix_devices",
    "create_sink",
]
