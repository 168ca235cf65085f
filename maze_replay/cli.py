"""Command line: execute a program against a maze, or replay a saved log.

    python -m maze_replay run maze.json program.py --log-out run.ndjson
    python -m maze_replay replay maze.json run.ndjson
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

from .config import ExecutionConfig, ReplayConfig, SessionConfig, skin_by_id
from .library import MazeLibrary
from .storage import load_maze, read_log, write_log


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maze_replay", description=__doc__.splitlines()[0])
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--step-speed", type=int, default=None, help="milliseconds per animation frame")
    parser.add_argument("--crash-seed", type=int, default=None)
    parser.add_argument("--skin", type=int, default=0)
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="execute a program and replay its log")
    run.add_argument("maze", type=Path)
    run.add_argument("program", type=Path)
    run.add_argument("--max-ticks", type=int, default=None)
    run.add_argument("--log-out", type=Path, default=None)

    replay = sub.add_parser("replay", help="replay a saved command log")
    replay.add_argument("maze", type=Path)
    replay.add_argument("log", type=Path)
    return parser


def _session_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> SessionConfig:
    try:
        execution = ExecutionConfig() if getattr(args, "max_ticks", None) is None else ExecutionConfig(args.max_ticks)
        replay = ReplayConfig(crash_seed=args.crash_seed)
        if args.step_speed is not None:
            replay = ReplayConfig(step_speed=args.step_speed, crash_seed=args.crash_seed)
        skin = skin_by_id(args.skin)
    except ValueError as exc:
        parser.error(str(exc))
    return SessionConfig(execution=execution, replay=replay, skin=skin)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    config = _session_config(args, parser)

    try:
        grid = load_maze(args.maze)
    except FileNotFoundError:
        parser.error(f"Maze file not found: {args.maze}")
    except (json.JSONDecodeError, ValueError) as exc:
        parser.error(f"Invalid maze file {args.maze}: {exc}")

    lib = MazeLibrary()
    if args.command == "run":
        try:
            source = args.program.read_text(encoding="utf-8")
        except FileNotFoundError:
            parser.error(f"Program file not found: {args.program}")
        session, summary = lib.run_program(grid, source, config=config)
        if args.log_out is not None:
            write_log(args.log_out, session.log)
    else:
        try:
            log = read_log(args.log)
        except FileNotFoundError:
            parser.error(f"Log file not found: {args.log}")
        except (json.JSONDecodeError, ValueError) as exc:
            parser.error(f"Invalid log file {args.log}: {exc}")
        session, summary = lib.replay_log(grid, log, config=config)

    print(json.dumps(asdict(summary), indent=2, sort_keys=True))
    return 0
