"""
Models package - Data models for the Pong Wars game
"""

from .enums import Team, SeedPattern, MatrixEncoding, SchedulerState, RunMode, LogLevel, LogCategory
from .ball import Ball
from .config import GameConfig, PhysicsParams
from .errors import PongWarsError, ConfigError, DeviceError, RenderError
from .frame import FrameBuffer, TickStatus

__all__ = [
    'Team',
    'SeedPattern',
    'MatrixEncoding',
    'SchedulerState',
    'RunMode',
    'LogLevel',
    'LogCategory',
    'Ball',
    'GameConfig',
    'PhysicsParams',
    'PongWarsError',
    'ConfigError',
    'DeviceError',
    'RenderError',
    'FrameBuffer',
    'TickStatus',
]
