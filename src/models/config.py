"""
Run configuration models

GameConfig is built once at startup (YAML file + CLI overrides) and passed
read-only into the Scheduler. validate() is the only place where ranges are
enforced; everything downstream assumes a valid config.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from models.enums import MatrixEncoding, SeedPattern
from models.errors import ConfigError

# Accepted ranges
MIN_BALLS_PER_TEAM = 1
MAX_BALLS_PER_TEAM = 5
MIN_FPS = 1
MAX_FPS = 120
MIN_PANEL_SIZE = 2

# Framework 16 LED Matrix module geometry
MODULE_WIDTH = 9
MODULE_HEIGHT = 34


@dataclass(frozen=True)
class PhysicsParams:
    """Ball motion tuning. Speeds are in cells per second."""
    base_speed: float = 9.0
    min_speed: float = 6.0           # per-axis lower bound after a tile bounce
    max_speed: float = 15.0          # per-axis upper bound after a tile bounce
    angle_jitter: float = 0.1        # radians, applied after a tile bounce
    start_jitter: float = math.pi / 6
    tile_bounce: bool = True


@dataclass(frozen=True)
class GameConfig:
    """Immutable per-run settings."""
    dual_mode: bool = False
    balls_per_team: int = 2
    fps: int = 32
    brightness: int = 50             # percent
    debug: bool = False

    seed: Optional[int] = None
    seed_pattern: SeedPattern = SeedPattern.AUTO

    day_bright: bool = True
    bright_level: int = 255
    dim_level: int = 0

    panel_width: int = MODULE_WIDTH
    panel_height: int = MODULE_HEIGHT
    encoding: MatrixEncoding = MatrixEncoding.GREYSCALE
    baud_rate: int = 115200
    timeout_s: float = 5.0
    fps_ceiling: Optional[int] = None

    physics: PhysicsParams = field(default_factory=PhysicsParams)

    # ------------------------------------------------------------
    # Derived geometry
    # ------------------------------------------------------------

    @property
    def panel_count(self) -> int:
        return 2 if self.dual_mode else 1

    @property
    def grid_width(self) -> int:
        return self.panel_width * self.panel_count

    @property
    def grid_height(self) -> int:
        return self.panel_height

    @property
    def resolved_seed_pattern(self) -> SeedPattern:
        if self.seed_pattern is SeedPattern.AUTO:
            return SeedPattern.VERTICAL if self.dual_mode else SeedPattern.HORIZONTAL
        return self.seed_pattern

    # ------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------

    def validate(self) -> "GameConfig":
        """Raise ConfigError on the first out-of-range value; return self."""
        _check_range("balls_per_team", self.balls_per_team, MIN_BALLS_PER_TEAM, MAX_BALLS_PER_TEAM)
        _check_range("fps", self.fps, MIN_FPS, MAX_FPS)
        _check_range("brightness", self.brightness, 0, 100)
        _check_range("bright_level", self.bright_level, 0, 255)
        _check_range("dim_level", self.dim_level, 0, 255)
        _check_range("panel_width", self.panel_width, MIN_PANEL_SIZE, 255)
        _check_range("panel_height", self.panel_height, MIN_PANEL_SIZE, 255)

        if self.baud_rate <= 0:
            raise ConfigError("baud_rate must be positive", field="baud_rate", value=self.baud_rate)
        if self.timeout_s <= 0:
            raise ConfigError("timeout_s must be positive", field="timeout_s", value=self.timeout_s)
        if self.fps_ceiling is not None:
            _check_range("fps_ceiling", self.fps_ceiling, MIN_FPS, MAX_FPS)

        p = self.physics
        if not 0 < p.min_speed <= p.base_speed <= p.max_speed:
            raise ConfigError(
                "physics speeds must satisfy 0 < min_speed <= base_speed <= max_speed",
                min_speed=p.min_speed,
                base_speed=p.base_speed,
                max_speed=p.max_speed,
            )
        if p.angle_jitter < 0 or p.start_jitter < 0:
            raise ConfigError("physics jitter must not be negative",
                              angle_jitter=p.angle_jitter, start_jitter=p.start_jitter)
        return self

    # ------------------------------------------------------------
    # Construction from YAML data
    # ------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GameConfig":
        """
        Build from the sectioned YAML layout:

            game:    dual_mode, balls_per_team, seed, seed_pattern
            render:  fps, brightness, day_bright, bright_level, dim_level
            matrix:  panel_width, panel_height, encoding, baud_rate, timeout_s, fps_ceiling
            physics: PhysicsParams fields
            debug:   bool

        Result is validated.
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("config root must be a mapping", type=type(data).__name__)

        unknown = set(data) - {"game", "render", "matrix", "physics", "debug", "include"}
        if unknown:
            raise ConfigError("unknown config sections", sections=sorted(unknown))

        flat: Dict[str, Any] = {}
        for section in ("game", "render", "matrix"):
            values = data.get(section) or {}
            if not isinstance(values, dict):
                raise ConfigError(f"section '{section}' must be a mapping")
            flat.update(values)
        if "debug" in data:
            flat["debug"] = data["debug"]

        physics_data = data.get("physics") or {}
        if not isinstance(physics_data, dict):
            raise ConfigError("section 'physics' must be a mapping")

        kwargs = _coerce(cls, flat)
        kwargs["physics"] = PhysicsParams(**_coerce(PhysicsParams, physics_data))
        return cls(**kwargs).validate()


def _check_range(name: str, value, low, high) -> None:
    if not low <= value <= high:
        raise ConfigError(f"{name} out of range [{low}, {high}]", field=name, value=value)


def _coerce(model, values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert raw YAML scalars to the dataclass field types."""
    known = {f.name: f for f in fields(model) if f.name != "physics"}
    out: Dict[str, Any] = {}

    for key, raw in values.items():
        if key not in known:
            raise ConfigError(f"unknown config key '{key}'", key=key)

        default = known[key].default
        try:
            if key == "seed_pattern":
                out[key] = SeedPattern(str(raw).lower())
            elif key == "encoding":
                out[key] = MatrixEncoding(str(raw).lower())
            elif raw is None:
                if key not in ("seed", "fps_ceiling"):
                    raise ConfigError(f"'{key}' must not be empty", key=key)
                out[key] = None
            elif isinstance(default, bool):
                if not isinstance(raw, bool):
                    raise ConfigError(f"'{key}' must be true or false", key=key, value=raw)
                out[key] = raw
            elif isinstance(default, float):
                out[key] = float(raw)
            else:
                if isinstance(raw, bool) or int(raw) != raw:
                    raise ConfigError(f"'{key}' must be an integer", key=key, value=raw)
                out[key] = int(raw)
        except (TypeError, ValueError) as ex:
            raise ConfigError(f"invalid value for '{key}'", key=key, value=raw, error=str(ex)) from ex

    return out
