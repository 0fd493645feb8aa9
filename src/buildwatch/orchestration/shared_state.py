"""
Shared data structures for the orchestration module.

This module defines the runner configuration and the constants used across
the orchestration components.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..models.config import CommandOptions


@dataclass
class WatchRunnerConfig:
    """
    Configuration parameters for WatchRunner.

    `config_path` is None when the bundle comes from command-line options.
    """
    options: CommandOptions
    config_path: Optional[Path] = None
    # stderr is an interactive terminal
    interactive: bool = False
    # stdin is an interactive terminal; EOF is only watched on pipes
    stdin_is_tty: bool = True

    @property
    def silent(self) -> bool:
        return self.options.silent

    @classmethod
    def from_options(cls, options: CommandOptions, config_path: Optional[Path]) -> "WatchRunnerConfig":
        return cls(
            options=options,
            config_path=config_path,
            interactive=sys.stderr.isatty(),
            stdin_is_tty=sys.stdin is None or sys.stdin.isatty(),
        )


class TimeoutConstants:
    """
    Centralized timing configuration.
    """
    # Batching window of the config file watcher, in milliseconds
    CONFIG_WATCH_DEBOUNCE_MS = 50

    # Read size while draining a piped stdin
    STDIN_READ_CHUNK = 4096
