import argparse
import logging
import os
import sys

import anyio

from .config import RaceConfig, load_config
from .errors import ConfigError
from .executor import TaskExecutor
from .racer import RaceMode, Racer
from .results import Outcome


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deadline-racer",
        description="Race blocking tasks against a timeout and print the first result",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .toml, .yaml or .json config file",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in RaceMode],
        default=None,
        help="Whether failed tasks may decide the race",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for durations")
    parser.add_argument(
        "--max-duration",
        type=int,
        default=None,
        help="Timeout in time units",
    )
    parser.add_argument(
        "--wait-for-losers",
        action="store_true",
        help="Return only once every task has finished",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true")
    verbosity.add_argument("-q", "--quiet", action="store_true")

    return parser


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG
        if args.verbose
        else logging.WARNING
        if args.quiet
        else logging.INFO,
        format="%(asctime)s %(threadName)s %(name)s: %(message)s",
        # task progress is part of the command's output
        stream=sys.stdout,
        force=True,
    )

    try:
        config = _config_from(args)
        outcome = anyio.run(_race_with, config)

    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130

    status, label = outcome.as_tuple()
    print(f"result is: {status} - {label}")
    return 0 if outcome.ok else 1


def _config_from(args: argparse.Namespace) -> RaceConfig:
    config = load_config(args.config) if args.config else RaceConfig()

    if args.mode is not None:
        config.mode = RaceMode(args.mode)
    if args.seed is not None:
        config.seed = args.seed
    if args.max_duration is not None:
        if args.max_duration <= 0:
            raise ConfigError("--max-duration should be positive")
        config.max_duration = args.max_duration
    if args.wait_for_losers:
        config.wait_for_losers = True

    return config


async def _race_with(config: RaceConfig) -> Outcome:
    executor = TaskExecutor(
        config.max_val,
        config.threshold,
        seed=config.seed,
        time_unit=config.time_unit,
    )
    racer = Racer(
        executor,
        config.tasks,
        config.max_duration,
        mode=config.mode,
        wait_for_losers=config.wait_for_losers,
    )

    # informational only, the thread limiter is sized by the task count
    print(f"available processors: {os.cpu_count()}")
    print("waiting for result...")
    return await racer.run()
