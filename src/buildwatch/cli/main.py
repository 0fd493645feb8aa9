"""
Command-line interface for the buildwatch watch coordinator.

This module provides the main CLI entry point, handling command-line
arguments, configuration file resolution and running the watch loop until
a shutdown trigger fires.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .. import __version__
from ..config import get_config_path
from ..models import CommandOptions
from ..orchestration import WatchRunner, WatchRunnerConfig
from ..validation import ConfigLoadError, handle_cli_error

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildwatch",
        description="Run bundle build commands and rebuild when sources or the configuration change.",
    )
    parser.add_argument(
        "-c",
        "--config",
        nargs="?",
        const="",
        default=None,
        help="Use a TOML configuration file. Without a value, looks for buildwatch.config.toml "
        "then buildwatch.toml in the current directory.",
    )
    parser.add_argument(
        "-i",
        "--input",
        action="append",
        default=[],
        help="Bundle input (repeatable). Used when no configuration file is given.",
    )
    parser.add_argument(
        "-o",
        "--output",
        action="append",
        default=[],
        help="File produced by the build command (repeatable).",
    )
    parser.add_argument(
        "--command",
        type=str,
        help="Shell command that builds the bundle.",
    )
    parser.add_argument(
        "--watch",
        action="append",
        default=[],
        help="Path to watch for source changes (repeatable). Defaults to the input directories.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Glob pattern excluded from source watching (repeatable).",
    )
    parser.add_argument(
        "--perf",
        action="store_true",
        help="Report per-phase timings after each bundle.",
    )
    parser.add_argument(
        "--no-clear-screen",
        action="store_true",
        help="Do not clear the terminal before each build.",
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Only print errors.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> CommandOptions:
    """Translate parsed arguments into `CommandOptions`."""
    return CommandOptions(
        config=args.config or None,
        use_default_config=args.config == "",
        silent=args.silent,
        input=list(args.input),
        output=list(args.output),
        command=args.command,
        watch=list(args.watch),
        exclude=list(args.exclude),
        perf=args.perf,
        clear_screen=not args.no_clear_screen,
    )


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for buildwatch.

    Resolves the configuration file (when `--config` is given) before any
    watching starts, then runs the watch loop until SIGINT / SIGTERM,
    end-of-input on a piped stdin, or a fatal error.

    Raises:
        SystemExit: With the exit code of the watch run, or 1 when the
            configuration file cannot be found.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    options = options_from_args(args)

    config_path = None
    if args.config is not None:
        try:
            config_path = get_config_path(options.config)
        except ConfigLoadError as e:
            handle_cli_error(
                error=e,
                context="configuration file resolution",
                exit_code=1,
                logger=logger,
            )
        logger.info(f"Using configuration file {config_path}")

    runner = WatchRunner(WatchRunnerConfig.from_options(options, config_path))
    exit_code = asyncio.run(runner.run())
    logger.info(f"Watch run finished with exit code {exit_code}")
    sys.exit(exit_code)


if __name__ == "__main__":
    main_cli()
