# hardware/matrix/serial_link.py
"""
SerialLink - pyserial-backed ISerialLink
=========================================
Also owns LED Matrix discovery: serial ports are filtered by the Framework
USB VID/PID and ordered by USB serial number so the same module always gets
the same panel index.
"""

from __future__ import annotations
import os
import time
from dataclasses import dataclass
from typing import List, Optional

import serial
from serial.tools import list_ports

from hardware.matrix.protocol import USB_PIDS, USB_VID
from models.errors import DeviceError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)

SETTLE_DELAY_S = 0.1


@dataclass(frozen=True)
class MatrixDeviceInfo:
    """One enumerated LED Matrix module."""
    port: str
    serial_number: Optional[str] = None
    description: str = ""

    def __str__(self) -> str:
        return f"{self.port} (serial={self.serial_number or '?'}, {self.description})"


def find_matrix_devices() -> List[MatrixDeviceInfo]:
    """
    List connected LED Matrix modules.

    Modules with a USB serial number come first (sorted by it), then the
    rest sorted by port name.
    """
    devices = [
        MatrixDeviceInfo(p.device, p.serial_number, p.description or "")
        for p in list_ports.comports()
        if p.vid == USB_VID and p.pid in USB_PIDS
    ]
    devices.sort(key=lambda d: (d.serial_number is None, d.serial_number or "", d.port))
    log.debug("LED Matrix enumeration", found=len(devices))
    return devices


def select_devices(devices: List[MatrixDeviceInfo], dual_mode: bool) -> List[MatrixDeviceInfo]:
    """
    Pick the modules to drive, in panel order (panel 0 = logical left).

    Dual mode uses the first two modules in reverse enumeration order; on
    the Framework 16 the lower serial number sits on the right.
    """
    if not devices:
        raise DeviceError("No Framework LED Matrix modules found")

    if not dual_mode:
        return devices[:1]

    if len(devices) < 2:
        raise DeviceError(
            f"Dual mode requested but only {len(devices)} LED Matrix module detected",
            found=len(devices),
        )
    chosen = list(reversed(devices[:2]))
    log.info("Auto-ordered modules", left=chosen[0].port, right=chosen[1].port)
    return chosen


class SerialLink:
    """
    One open LED Matrix port.

    write() either hands the whole buffer to the OS or raises DeviceError;
    there is no retry.
    """

    def __init__(self, port: serial.Serial) -> None:
        self._port = port

    @classmethod
    def open(cls, device: str, baud_rate: int, timeout_s: float) -> "SerialLink":
        try:
            port = serial.Serial(
                device,
                baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=timeout_s,
                write_timeout=timeout_s,
                exclusive=True if os.name == "posix" else None,
            )
            port.reset_input_buffer()
            port.reset_output_buffer()
        except (serial.SerialException, OSError, ValueError) as ex:
            raise DeviceError(f"Failed opening port {device}: {ex}", port=device) from ex

        time.sleep(SETTLE_DELAY_S)
        log.info("Connected LED Matrix", port=device, baud=baud_rate)
        return cls(port)

    @property
    def name(self) -> str:
        return self._port.port or "?"

    def write(self, data: bytes) -> int:
        try:
            written = self._port.write(data)
            self._port.flush()
        except (serial.SerialException, OSError) as ex:
            raise DeviceError(f"Write failed on {self.name}: {ex}", port=self.name) from ex

        if written is not None and written != len(data):
            raise DeviceError(
                f"Short write on {self.name}",
                port=self.name,
                expected=len(data),
                written=written,
            )
        return len(data)

    def close(self) -> None:
        try:
            self._port.close()
        except (serial.SerialException, OSError) as ex:
            log.warn("Error closing port", port=self.name, error=str(ex))


def open_serial_links(devices: List[MatrixDeviceInfo], baud_rate: int, timeout_s: float) -> List[SerialLink]:
    """Open every device or none: on failure the ones already open are closed."""
    links: List[SerialLink] = []
    try:
        for device in devices:
            links.append(SerialLink.open(device.port, baud_rate, timeout_s))
    except DeviceError:
        for link in links:
            link.close()
        raise
    return links
