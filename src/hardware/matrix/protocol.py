# hardware/matrix/protocol.py
"""
Framework LED Matrix wire protocol
==================================
Every command: MAGIC_WORD (0x32 0xAC) + command id + parameters.

Commands used:
- BRIGHTNESS (0x00) <level>              global brightness 0-255
- DRAW_BW (0x06) <ceil(w*h/8) bytes>     1-bit bitmap, bit i = x + w*y, LSB first
- STAGE_GREY_COL (0x07) <x> <h bytes>    stage column x, top to bottom
- DRAW_GREY_BUFFER (0x08) 0x00           show the staged columns

Greyscale frames are therefore column-major: one STAGE_GREY_COL per column
followed by a single commit. The module is a 9x34 panel on USB CDC serial
(115200 baud, 8N1).
"""

from __future__ import annotations
import math
from typing import List, Optional, Sequence, Tuple

from models.enums import MatrixEncoding
from models.frame import FrameBuffer

MAGIC_WORD = bytes([0x32, 0xAC])

CMD_BRIGHTNESS = 0x00
CMD_DRAW_BW = 0x06
CMD_STAGE_GREY_COL = 0x07
CMD_DRAW_GREY_BUFFER = 0x08

USB_VID = 0x32AC
USB_PIDS = (0x0020, 0x0021)

BAUD_RATE = 115200
WIRE_BITS_PER_BYTE = 10     # start + 8 data + stop
LINK_OVERHEAD = 1.1         # empirical margin for USB CDC + firmware processing


def command(cmd: int, params: bytes = b"") -> bytes:
    return MAGIC_WORD + bytes([cmd]) + params


def encode_brightness(level: int) -> bytes:
    return command(CMD_BRIGHTNESS, bytes([max(0, min(255, level))]))


def percent_to_level(percent: int) -> int:
    return max(0, min(255, percent * 255 // 100))


def encode_bw_frame(frame: FrameBuffer) -> bytes:
    """DRAW_BW: a cell is lit when its brightness is non-zero."""
    bitmap = bytearray(math.ceil(frame.width * frame.height / 8))
    for i, value in enumerate(frame.values):
        if value:
            bitmap[i // 8] |= 1 << (i % 8)
    return command(CMD_DRAW_BW, bytes(bitmap))


def encode_grey_column(x: int, column: bytes) -> bytes:
    return command(CMD_STAGE_GREY_COL, bytes([x]) + column)


def encode_grey_commit() -> bytes:
    return command(CMD_DRAW_GREY_BUFFER, b"\x00")


def encode_grey_frame(
    frame: FrameBuffer,
    previous: Optional[Sequence[bytes]] = None,
) -> Tuple[bytes, List[bytes]]:
    """
    Encode a greyscale frame as staged columns + commit.

    Columns equal to the matching entry of previous are not staged. When
    nothing changed the payload is empty (no commit either).

    Returns:
        (payload, columns) - columns is the full column list for the next diff
    """
    columns = [frame.column(x) for x in range(frame.width)]
    payload = bytearray()

    for x, column in enumerate(columns):
        if previous is not None and x < len(previous) and previous[x] == column:
            continue
        payload += encode_grey_column(x, column)

    if payload:
        payload += encode_grey_commit()

    return bytes(payload), columns


def frame_size(encoding: MatrixEncoding, width: int, height: int) -> int:
    """Bytes needed for one full (non-diffed) frame on one module."""
    if encoding is MatrixEncoding.BW:
        return len(MAGIC_WORD) + 1 + math.ceil(width * height / 8)
    column = len(MAGIC_WORD) + 2 + height
    commit = len(MAGIC_WORD) + 2
    return width * column + commit


def estimated_max_fps(
    encoding: MatrixEncoding,
    width: int,
    height: int,
    modules: int = 1,
    baud_rate: int = BAUD_RATE,
) -> int:
    """Frame rate ceiling of the serial link for full frames on every module."""
    total = frame_size(encoding, width, height) * modules
    bytes_per_sec = baud_rate / WIRE_BITS_PER_BYTE
    return max(1, math.floor(bytes_per_sec / (total * LINK_OVERHEAD)))
