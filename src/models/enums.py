"""
Enums for the Pong Wars game, renderer and matrix transport
"""

from enum import Enum, auto


class Team(Enum):
    """
    Cell / ball ownership.

    DAY cells render bright and NIGHT cells dim by default
    (see GameConfig.day_bright).
    """
    DAY = auto()
    NIGHT = auto()

    @property
    def opponent(self) -> "Team":
        return Team.NIGHT if self is Team.DAY else Team.DAY


class SeedPattern(Enum):
    """Deterministic starting partition of the grid"""
    VERTICAL = "vertical"      # Left half DAY, right half NIGHT
    HORIZONTAL = "horizontal"  # Top half NIGHT, bottom half DAY
    AUTO = "auto"              # HORIZONTAL on one panel, VERTICAL in dual mode


class MatrixEncoding(Enum):
    """Wire encoding used for frames sent to the LED Matrix module"""
    GREYSCALE = "greyscale"    # STAGE_GREY_COL per column + DRAW_GREY_BUFFER commit
    BW = "bw"                  # DRAW_BW 1-bit bitmap + global BRIGHTNESS


class SchedulerState(Enum):
    """Scheduler lifecycle: IDLE → RUNNING → STOPPED"""
    IDLE = auto()
    RUNNING = auto()
    STOPPED = auto()


class RunMode(Enum):
    """Frame sink selected by the CLI"""
    LIVE = auto()          # LED Matrix module(s) over USB serial
    SIMULATION = auto()    # ASCII rendering in the terminal


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    GAME = auto()        # Grid seeding, ball spawning, scores
    RENDER = auto()      # Frame rendering
    TRANSPORT = auto()   # Wire protocol, serial writes
    HARDWARE = auto()    # Device enumeration, port open/close
    SCHEDULER = auto()   # Tick loop, timing
    SYSTEM = auto()      # Startup, errors
    SHUTDOWN = auto()    # Shutdown sequence
