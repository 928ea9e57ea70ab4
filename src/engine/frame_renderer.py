"""
FrameRenderer
=============
Turns grid ownership + ball overlay into one FrameBuffer per panel.

Rules:
- owner level: bright_level for the bright team, dim_level for the other
- a cell under a ball centre takes the opposite level (ball visibility)
- percent scaling is applied last: level * percent // 100, clamped to 0..255

The logical grid is split column-wise across panels; PanelLayout holds the
logical column <-> (panel, local column) mapping.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Set, Tuple

from engine.grid_model import GridModel
from models.ball import Ball
from models.config import GameConfig
from models.enums import MatrixEncoding, Team
from models.errors import RenderError
from models.frame import FrameBuffer


@dataclass(frozen=True)
class PanelLayout:
    """Side-by-side panels of identical size; panel 0 is the leftmost."""
    panel_width: int
    panel_height: int
    panel_count: int = 1

    @property
    def logical_width(self) -> int:
        return self.panel_width * self.panel_count

    def locate(self, column: int) -> Tuple[int, int]:
        """Logical column → (panel index, local column)."""
        if not 0 <= column < self.logical_width:
            raise RenderError(f"column {column} outside layout", width=self.logical_width)
        return divmod(column, self.panel_width)

    def global_column(self, panel: int, local_column: int) -> int:
        """(panel index, local column) → logical column."""
        if not (0 <= panel < self.panel_count and 0 <= local_column < self.panel_width):
            raise RenderError(f"panel {panel} column {local_column} outside layout")
        return panel * self.panel_width + local_column

    @classmethod
    def from_config(cls, config: GameConfig) -> "PanelLayout":
        return cls(config.panel_width, config.panel_height, config.panel_count)


def scale_brightness(level: int, percent: int) -> int:
    return max(0, min(255, level * percent // 100))


class FrameRenderer:

    def __init__(
        self,
        layout: PanelLayout,
        brightness: int = 100,
        bright_level: int = 255,
        dim_level: int = 0,
        bright_team: Team = Team.DAY,
    ) -> None:
        self.layout = layout
        self.brightness = brightness
        self.bright_team = bright_team
        self._levels = {
            bright_team: bright_level,
            bright_team.opponent: dim_level,
        }

    @classmethod
    def from_config(cls, config: GameConfig) -> "FrameRenderer":
        """
        BW frames are two-level: the bright team is lit, the other team is
        dark, and the percent is left to the module's BRIGHTNESS command.
        """
        bright_team = Team.DAY if config.day_bright else Team.NIGHT
        if config.encoding is MatrixEncoding.BW:
            return cls(PanelLayout.from_config(config), bright_team=bright_team)

        return cls(
            PanelLayout.from_config(config),
            brightness=config.brightness,
            bright_level=config.bright_level,
            dim_level=config.dim_level,
            bright_team=bright_team,
        )

    def level_for(self, owner: Team, has_ball: bool) -> int:
        """Scaled brightness of one cell."""
        team = owner.opponent if has_ball else owner
        return scale_brightness(self._levels[team], self.brightness)

    def render(self, grid: GridModel, balls: Sequence[Ball]) -> List[FrameBuffer]:
        layout = self.layout
        if grid.width != layout.logical_width or grid.height != layout.panel_height:
            raise RenderError(
                "grid does not match panel layout",
                grid=f"{grid.width}x{grid.height}",
                layout=f"{layout.logical_width}x{layout.panel_height}",
            )

        ball_cells: Set[Tuple[int, int]] = {grid.cell_at(b.x, b.y) for b in balls}
        cells = grid.snapshot()

        frames = []
        for panel in range(layout.panel_count):
            values = bytearray(layout.panel_width * layout.panel_height)
            for local_x in range(layout.panel_width):
                x = layout.global_column(panel, local_x)
                column = cells[x]
                for y in range(layout.panel_height):
                    values[local_x + layout.panel_width * y] = self.level_for(
                        column[y], (x, y) in ball_cells
                    )
            frames.append(FrameBuffer(layout.panel_width, layout.panel_height, bytes(values)))

        return frames
