"""
BallEngine
==========
Owns the balls, advances their motion and claims cells on the GridModel.

Per sub-step, for every ball in creation order:
  1. move, reflecting off the grid edges (centre kept in [0.5, size - 0.5])
  2. claim the cells under the four edge probes and under the centre
  3. with tile_bounce on, reflect off any probed opponent cell the ball
     is moving into, perturbing the heading with the seeded RNG

Sub-steps are sized from the ball's speed at the start of each sub-step, so
no sub-step travels more than MAX_SUBSTEP on either axis.

Balls claiming the same cell in one tick resolve in creation order: the
later ball wins.
"""

from __future__ import annotations
import math
import random
from typing import List

from engine.grid_model import GridModel
from models.ball import Ball, BALL_RADIUS
from models.config import PhysicsParams
from models.enums import SeedPattern, Team
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.GAME)

# Longest distance a ball may travel in one sub-step (cells)
MAX_SUBSTEP = 0.5
TIME_EPSILON = 1e-9

# Edge probes: (offset_x, offset_y) from the ball centre
PROBE_OFFSETS = (
    (BALL_RADIUS, 0.0),
    (-BALL_RADIUS, 0.0),
    (0.0, BALL_RADIUS),
    (0.0, -BALL_RADIUS),
)


class BallEngine:

    def __init__(self, width: int, height: int, physics: PhysicsParams, rng: random.Random) -> None:
        self.width = width
        self.height = height
        self.physics = physics
        self._rng = rng
        self._balls: List[Ball] = []

    # === Ball registry ===

    @property
    def balls(self) -> List[Ball]:
        """Copies of the balls in creation order."""
        return [b.copy() for b in self._balls]

    def add_ball(self, ball: Ball) -> None:
        """Take ownership of a copy of ball. Zero-speed balls are rejected."""
        if ball.dx == 0 and ball.dy == 0:
            raise ValueError("ball speed must be non-zero")

        owned = ball.copy()
        owned.x = min(max(owned.x, BALL_RADIUS), self.width - BALL_RADIUS)
        owned.y = min(max(owned.y, BALL_RADIUS), self.height - BALL_RADIUS)
        self._balls.append(owned)

    def spawn(self, balls_per_team: int, grid: GridModel, pattern: SeedPattern) -> None:
        """
        Create balls_per_team balls per team, alternating DAY/NIGHT.

        Each ball starts at a random point of its own team's territory and
        heads towards the centre of the opposing territory, give or take
        start_jitter.
        """
        for _ in range(balls_per_team):
            for team in (Team.DAY, Team.NIGHT):
                x0, x1, y0, y1 = grid.territory(pattern, team)
                x = self._rng.uniform(x0 + BALL_RADIUS, x1 - BALL_RADIUS)
                y = self._rng.uniform(y0 + BALL_RADIUS, y1 - BALL_RADIUS)

                ox0, ox1, oy0, oy1 = grid.territory(pattern, team.opponent)
                target_x = (ox0 + ox1) / 2
                target_y = (oy0 + oy1) / 2

                jitter = self.physics.start_jitter
                angle = math.atan2(target_y - y, target_x - x) + self._rng.uniform(-jitter, jitter)
                ball = Ball(
                    x, y,
                    self.physics.base_speed * math.cos(angle),
                    self.physics.base_speed * math.sin(angle),
                    team,
                )
                self._clamp_speed(ball)
                self.add_ball(ball)

        log.debug("Balls spawned", count=len(self._balls), pattern=pattern.value)

    # === Simulation ===

    def step(self, dt: float, grid: GridModel) -> int:
        """
        Advance every ball by dt seconds.

        Returns:
            Number of cells whose owner changed
        """
        changed = 0
        for ball in self._balls:
            remaining = dt
            while remaining > TIME_EPSILON:
                h = min(remaining, MAX_SUBSTEP / max(abs(ball.dx), abs(ball.dy)))
                self._move(ball, h)
                changed += self._claim(ball, grid)
                remaining -= h

        return changed

    def _move(self, ball: Ball, h: float) -> None:
        low = BALL_RADIUS
        high_x = self.width - BALL_RADIUS
        high_y = self.height - BALL_RADIUS

        nx = ball.x + ball.dx * h
        ny = ball.y + ball.dy * h

        if nx > high_x:
            nx = high_x
            ball.dx = -abs(ball.dx)
        elif nx < low:
            nx = low
            ball.dx = abs(ball.dx)

        if ny > high_y:
            ny = high_y
            ball.dy = -abs(ball.dy)
        elif ny < low:
            ny = low
            ball.dy = abs(ball.dy)

        ball.x = nx
        ball.y = ny

    def _claim(self, ball: Ball, grid: GridModel) -> int:
        changed = 0

        for offset_x, offset_y in PROBE_OFFSETS:
            px = ball.x + offset_x
            py = ball.y + offset_y
            if not (0 <= px < self.width and 0 <= py < self.height):
                continue

            cell = (int(px), int(py))
            if not grid.claim(cell, ball.team):
                continue
            changed += 1

            moving_into = ball.dx * offset_x + ball.dy * offset_y > 0
            if self.physics.tile_bounce and moving_into:
                self._tile_bounce(ball, horizontal=offset_x != 0)

        if grid.claim(grid.cell_at(ball.x, ball.y), ball.team):
            changed += 1

        return changed

    def _tile_bounce(self, ball: Ball, horizontal: bool) -> None:
        if horizontal:
            ball.dx = -ball.dx
        else:
            ball.dy = -ball.dy

        jitter = self.physics.angle_jitter
        if jitter > 0:
            speed = ball.speed
            angle = math.atan2(ball.dy, ball.dx) + self._rng.uniform(-jitter, jitter)
            ball.dx = speed * math.cos(angle)
            ball.dy = speed * math.sin(angle)

        self._clamp_speed(ball)

    def _clamp_speed(self, ball: Ball) -> None:
        """Keep each axis speed within [min_speed, max_speed], preserving its sign."""
        low, high = self.physics.min_speed, self.physics.max_speed
        ball.dx = math.copysign(min(max(abs(ball.dx), low), high), ball.dx)
        ball.dy = math.copysign(min(max(abs(ball.dy), low), high), ball.dy)

    def __len__(self) -> int:
        return len(self._balls)
