# hardware/matrix/terminal_sink.py
"""
TerminalSink - IFrameSink that paints frames as text
=====================================================
Simulation mode: no hardware, each cell becomes a shade character chosen by
its brightness. Uses plain ANSI escape sequences (alternate screen, cursor
home, hidden cursor), like the logger's colour output.
"""

from __future__ import annotations
import sys
from typing import Optional, Sequence, TextIO

from models.errors import RenderError
from models.frame import FrameBuffer, TickStatus
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.RENDER)

ENTER_ALT_SCREEN = "\033[?1049h"
LEAVE_ALT_SCREEN = "\033[?1049l"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
CURSOR_HOME = "\033[H"
CLEAR_LINE = "\033[K"

SHADES = " ░▒▓█"
PANEL_SEPARATOR = "│"
TITLE = "Pong Wars - Simulation Mode"

# Terminal output has no link budget; cap at the config maximum.
TERMINAL_MAX_FPS = 120


def shade_for(value: int) -> str:
    """Map brightness 0-255 to a shade character; 0 is always blank."""
    if value <= 0:
        return SHADES[0]
    steps = len(SHADES) - 1
    return SHADES[1 + min(steps - 1, value * steps // 256)]


class TerminalSink:

    def __init__(self, stream: Optional[TextIO] = None, use_ansi: bool = True) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.use_ansi = use_ansi
        self.status_line = ""
        self.frames_drawn = 0
        self._open = False

    @property
    def max_fps(self) -> int:
        return TERMINAL_MAX_FPS

    def open(self) -> None:
        if self._open:
            return
        if self.use_ansi:
            self.stream.write(ENTER_ALT_SCREEN + HIDE_CURSOR)
            self.stream.flush()
        self._open = True
        log.debug("Terminal sink opened")

    def send(self, frames: Sequence[FrameBuffer]) -> None:
        if not frames:
            raise RenderError("TerminalSink.send() needs at least one frame")
        heights = {f.height for f in frames}
        if len(heights) != 1:
            raise RenderError("Panels must share the same height", heights=sorted(heights))

        self.stream.write(self.render_text(frames))
        self.stream.flush()
        self.frames_drawn += 1

    def render_text(self, frames: Sequence[FrameBuffer]) -> str:
        """Full screen text for frames (title, status, grid)."""
        height = frames[0].height
        prefix = CURSOR_HOME if self.use_ansi else ""
        eol = CLEAR_LINE + "\n" if self.use_ansi else "\n"

        lines = [TITLE, self.status_line, ""]
        for y in range(height):
            lines.append(PANEL_SEPARATOR.join(
                "".join(shade_for(v) for v in frame.row(y)) for frame in frames
            ))
        return prefix + eol.join(lines) + eol

    def update_status(self, status: TickStatus) -> None:
        self.status_line = (
            f"Day: {status.day_score} | Night: {status.night_score} | "
            f"FPS: {status.fps_actual:.1f}/{status.fps_target:.0f} | Frame: {status.frame}"
        )

    def clear(self) -> None:
        if self.use_ansi and self._open:
            self.stream.write(CURSOR_HOME + "\033[2J")
            self.stream.flush()

    def close(self) -> None:
        if not self._open:
            return
        if self.use_ansi:
            self.stream.write(SHOW_CURSOR + LEAVE_ALT_SCREEN)
            self.stream.flush()
        self._open = False
        log.debug("Terminal sink closed", frames=self.frames_drawn)
