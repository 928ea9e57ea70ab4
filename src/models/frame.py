"""
FrameBuffer - brightness values for one physical panel for one tick.

Storage is row-major (index = x + width * y). The matrix wire format is
column-major, so encoders read it through column().
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class FrameBuffer:
    width: int
    height: int
    values: bytes

    def __post_init__(self):
        if len(self.values) != self.width * self.height:
            raise ValueError(
                f"FrameBuffer expects {self.width * self.height} values, got {len(self.values)}"
            )

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[int]]) -> "FrameBuffer":
        rows = [list(r) for r in rows]
        height = len(rows)
        width = len(rows[0]) if rows else 0
        return cls(width, height, bytes(v for row in rows for v in row))

    @classmethod
    def filled(cls, width: int, height: int, value: int = 0) -> "FrameBuffer":
        return cls(width, height, bytes([value]) * (width * height))

    def at(self, x: int, y: int) -> int:
        return self.values[x + self.width * y]

    def column(self, x: int) -> bytes:
        """Brightness of column x, top to bottom."""
        return self.values[x::self.width]

    def row(self, y: int) -> bytes:
        start = self.width * y
        return self.values[start:start + self.width]


@dataclass(frozen=True)
class TickStatus:
    """Per-tick summary handed to frame sinks alongside the frames."""
    frame: int
    day_score: int
    night_score: int
    fps_target: float
    fps_actual: float = 0.0
    compute_ms: float = 0.0
