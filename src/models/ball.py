"""Ball model"""

import math
from dataclasses import dataclass

from models.enums import Team

BALL_RADIUS = 0.5


@dataclass
class Ball:
    """
    One ball: centre position in cell units, velocity in cells per second.

    Mutable, but only BallEngine mutates the instances it owns; everything
    it hands out is a copy.
    """
    x: float
    y: float
    dx: float
    dy: float
    team: Team

    @property
    def speed(self) -> float:
        return math.hypot(self.dx, self.dy)

    @property
    def cell(self):
        """Cell under the ball centre (may be out of range before clamping)."""
        return int(self.x), int(self.y)

    def copy(self) -> "Ball":
        return Ball(self.x, self.y, self.dx, self.dy, self.team)
