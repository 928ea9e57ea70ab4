"""
GameState - explicit per-run simulation state.

Bundles the grid, the ball engine and the seeded RNG they share. Created by
the Scheduler at the start of a run and dropped when the run ends, so no
state leaks between runs (or between tests).
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from engine.ball_engine import BallEngine
from engine.grid_model import GridModel
from models.ball import Ball
from models.config import GameConfig
from models.enums import Team
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.GAME)


@dataclass
class GameState:
    grid: GridModel
    engine: BallEngine
    seed: int
    frame: int = 0

    @classmethod
    def new(cls, config: GameConfig, seed: Optional[int] = None) -> "GameState":
        """
        Seed the grid and spawn balls.

        The effective seed is config.seed, then the seed argument, then a
        fresh random one. It is logged so any run can be replayed.
        """
        if config.seed is not None:
            seed = config.seed
        elif seed is None:
            seed = random.SystemRandom().randrange(2 ** 32)

        pattern = config.resolved_seed_pattern
        grid = GridModel(config.grid_width, config.grid_height, pattern)
        engine = BallEngine(config.grid_width, config.grid_height, config.physics, random.Random(seed))
        engine.spawn(config.balls_per_team, grid, pattern)

        log.info(
            "Game seeded",
            grid=f"{grid.width}x{grid.height}",
            pattern=pattern.value,
            balls=len(engine),
            seed=seed,
        )
        return cls(grid=grid, engine=engine, seed=seed)

    @property
    def balls(self) -> List[Ball]:
        return self.engine.balls

    def step(self, dt: float) -> int:
        """Advance one tick; returns the number of cells that flipped."""
        self.frame += 1
        return self.engine.step(dt, self.grid)

    def scores(self) -> Dict[Team, int]:
        return {team: self.grid.count(team) for team in Team}
