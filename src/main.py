#!/usr/bin/env python3
"""
main.py — Application entry point for Pong Wars
-----------------------------------------------

Responsible for:
- parsing the command line and loading the YAML config
- picking the frame sink (LED Matrix or terminal)
- running the Scheduler under the shutdown coordinator
- mapping ConfigError / DeviceError to exit codes

Commands:
    live              Run on the Framework 16 LED Matrix module(s)
    sim, simulation   Render in the terminal
    check             List connected LED Matrix modules
"""

import sys

# ---------------------------------------------------------------------------
# UTF-8 ENCODING FIX (shade glyphs and log symbols)
# ---------------------------------------------------------------------------

if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding and sys.stdout.encoding.lower() != 'utf-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding and sys.stderr.encoding.lower() != 'utf-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from engine.game_state import GameState
from engine.scheduler import Scheduler
from hardware.matrix.serial_link import find_matrix_devices
from hardware.matrix.sink_factory import create_sink
from lifecycle import ShutdownCoordinator
from lifecycle.handlers import SchedulerShutdownHandler
from managers import ConfigManager
from models.config import GameConfig
from models.enums import LogCategory, LogLevel, MatrixEncoding, RunMode, SeedPattern
from models.errors import ConfigError, DeviceError
from utils.logger import configure_logger, get_logger

log = get_logger().for_category(LogCategory.SYSTEM)

EXIT_OK = 0
EXIT_DEVICE_ERROR = 1
EXIT_CONFIG_ERROR = 2

MODES = {
    "live": RunMode.LIVE,
    "sim": RunMode.SIMULATION,
    "simulation": RunMode.SIMULATION,
}


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=None, help="YAML config file")
    common.add_argument("--dual", action="store_true", default=None, help="drive two modules as one 18x34 field")
    common.add_argument("--balls", type=int, default=None, help="balls per team (1-5)")
    common.add_argument("--fps", "-f", type=int, default=None, help="target frame rate (1-120)")
    common.add_argument("--brightness", type=int, default=None, help="brightness percent (0-100)")
    common.add_argument("--seed", type=int, default=None, help="random seed for a reproducible run")
    common.add_argument("--pattern", choices=[p.value for p in SeedPattern], default=None, help="starting partition")
    common.add_argument("--encoding", choices=[e.value for e in MatrixEncoding], default=None, help="LED Matrix wire encoding")
    common.add_argument("--frames", type=int, default=None, help="stop after N frames")
    common.add_argument("--debug", action="store_true", default=None, help="per-tick timing logs")

    parser = argparse.ArgumentParser(
        prog="pong-wars",
        description="Pong Wars for the Framework 16 LED Matrix",
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("live", parents=[common], help="run on the LED Matrix module(s)")
    commands.add_parser("sim", aliases=["simulation"], parents=[common], help="run in the terminal")
    commands.add_parser("check", help="list connected LED Matrix modules")
    return parser


def load_config(args: argparse.Namespace) -> GameConfig:
    """
    Raises:
        ConfigError: unreadable file or out-of-range value
    """
    manager = ConfigManager(args.config)
    manager.load()
    return manager.build(
        dual_mode=args.dual,
        balls_per_team=args.balls,
        fps=args.fps,
        brightness=args.brightness,
        seed=args.seed,
        seed_pattern=SeedPattern(args.pattern) if args.pattern else None,
        encoding=MatrixEncoding(args.encoding) if args.encoding else None,
        debug=args.debug,
    )


def check_devices() -> int:
    devices = find_matrix_devices()
    if not devices:
        print("✗ No Framework LED Matrix modules found.")
        print()
        print("Make sure:")
        print("  - The LED Matrix module is properly connected")
        print("  - You have permission to access the serial device")
        return EXIT_DEVICE_ERROR

    print(f"✓ Found {len(devices)} LED Matrix module(s):")
    for idx, device in enumerate(devices, start=1):
        print(f"  Module #{idx}: {device}")
    return EXIT_OK


async def run_game(mode: RunMode, config: GameConfig, max_frames: Optional[int] = None) -> Optional[GameState]:
    """
    Run one game until a signal, max_frames, or a device failure.

    Raises:
        DeviceError: the sink could not be opened or written
    """
    sink = create_sink(mode, config)
    scheduler = Scheduler(config, sink)

    task = asyncio.create_task(scheduler.run(max_frames), name="scheduler")

    coordinator = ShutdownCoordinator()
    coordinator.register(SchedulerShutdownHandler(scheduler, task))
    coordinator.setup_signal_handlers(asyncio.get_running_loop())
    coordinator.watch(task)

    log.info(
        f"🏁 Pong Wars running ({mode.name.lower()})",
        grid=f"{config.grid_width}x{config.grid_height}",
        balls=config.balls_per_team,
        fps=scheduler.fps,
    )

    await coordinator.wait_for_shutdown()
    await coordinator.shutdown_all()

    if task.cancelled():
        log.warn("Scheduler task was cancelled")
        return scheduler.game

    game = task.result()
    scores = game.scores()
    log.info(
        "👋 Pong Wars shut down cleanly",
        frames=game.frame,
        seed=game.seed,
        **{team.name.lower(): count for team, count in scores.items()},
    )
    return game


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    if args.command == "check":
        return check_devices()

    mode = MODES[args.command]
    # The terminal frame owns stdout in simulation mode
    log_stream = sys.stderr if mode is RunMode.SIMULATION else None

    try:
        config = load_config(args)
    except ConfigError as ex:
        configure_logger(LogLevel.INFO, stream=sys.stderr)
        log.error(f"Invalid configuration: {ex.message}", **ex.details)
        return EXIT_CONFIG_ERROR

    configure_logger(LogLevel.DEBUG if config.debug else LogLevel.INFO, stream=log_stream)

    try:
        asyncio.run(run_game(mode, config, args.frames))
    except DeviceError as ex:
        log.error(f"Device error: {ex.message}", **ex.details)
        return EXIT_DEVICE_ERROR
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")

    return EXIT_OK


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main())
