"""
GridModel
=========
Cell ownership for the Pong Wars board.

Every cell is owned by exactly one Team at all times; the only mutation is
claim(). Storage is column-major (cells[x][y]), matching the LED Matrix
column protocol.
"""

from __future__ import annotations
from typing import List, Tuple

from models.enums import SeedPattern, Team

Cell = Tuple[int, int]


class GridModel:
    """
    Usage:
        grid = GridModel(9, 34)
        grid.seed(SeedPattern.HORIZONTAL)
        grid.claim((4, 2), Team.DAY)
        grid.owner_of((4, 2))  # Team.DAY
    """

    def __init__(self, width: int, height: int, pattern: SeedPattern = SeedPattern.VERTICAL) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"grid size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._cells: List[List[Team]] = []
        self.seed(pattern)

    # === Seeding ===

    def seed(self, pattern: SeedPattern) -> None:
        """
        Reset ownership to a deterministic starting partition.

        VERTICAL:   columns [0, W/2) DAY, the rest NIGHT
        HORIZONTAL: rows [0, H/2) NIGHT, the rest DAY
        """
        if pattern is SeedPattern.AUTO:
            raise ValueError("AUTO must be resolved against the panel layout before seeding")

        half_w = self.width // 2
        half_h = self.height // 2

        if pattern is SeedPattern.VERTICAL:
            self._cells = [
                [Team.DAY if x < half_w else Team.NIGHT] * self.height
                for x in range(self.width)
            ]
        else:
            self._cells = [
                [Team.NIGHT if y < half_h else Team.DAY for y in range(self.height)]
                for _ in range(self.width)
            ]

    def territory(self, pattern: SeedPattern, team: Team) -> Tuple[int, int, int, int]:
        """Starting region of a team under pattern as (x0, x1, y0, y1), end-exclusive."""
        half_w = self.width // 2
        half_h = self.height // 2

        if pattern is SeedPattern.VERTICAL:
            if team is Team.DAY:
                return 0, half_w, 0, self.height
            return half_w, self.width, 0, self.height
        if pattern is SeedPattern.HORIZONTAL:
            if team is Team.NIGHT:
                return 0, self.width, 0, half_h
            return 0, self.width, half_h, self.height
        raise ValueError("AUTO must be resolved against the panel layout")

    # === Cell access ===

    def contains(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: float, y: float) -> Cell:
        """Map a continuous position to the cell containing it, clamped to the grid."""
        cx = min(max(int(x), 0), self.width - 1)
        cy = min(max(int(y), 0), self.height - 1)
        return cx, cy

    def owner_of(self, cell: Cell) -> Team:
        self._check(cell)
        x, y = cell
        return self._cells[x][y]

    def claim(self, cell: Cell, team: Team) -> bool:
        """Set the owner of cell. Returns True if ownership changed."""
        self._check(cell)
        x, y = cell
        if self._cells[x][y] is team:
            return False
        self._cells[x][y] = team
        return True

    def count(self, team: Team) -> int:
        return sum(column.count(team) for column in self._cells)

    def snapshot(self) -> Tuple[Tuple[Team, ...], ...]:
        """Immutable copy of ownership, column-major."""
        return tuple(tuple(column) for column in self._cells)

    def _check(self, cell: Cell) -> None:
        if not self.contains(cell):
            raise IndexError(f"cell {cell} outside {self.width}x{self.height} grid")

    def __repr__(self) -> str:
        return (
            f"GridModel({self.width}x{self.height}, "
            f"day={self.count(Team.DAY)}, night={self.count(Team.NIGHT)})"
        )
