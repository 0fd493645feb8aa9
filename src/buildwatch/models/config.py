"""
Configuration data models.

This module contains the configuration-related data structures for bundles,
their watch settings, the options given on the command line and the result
of a configuration load.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

# A bundle input is a single path, an ordered list of paths, or a mapping of
# entry names to paths.
InputSpec = Union[str, List[str], Dict[str, str]]


@dataclass
class WatchOptions:
    """
    Per-bundle watch settings, loaded from the `[bundles.watch]` table.
    """

    # Paths (files or directories) whose changes trigger a rebuild.
    include: List[str] = field(default_factory=list)
    # Glob patterns excluded from source watching.
    exclude: List[str] = field(default_factory=list)
    # Clear the terminal before each build heading when running on a TTY.
    clear_screen: bool = True
    # Debounce window for source changes, in milliseconds.
    build_delay: int = 50


@dataclass
class BundleConfig:
    """
    Configuration for a single bundle, loaded from the `[[bundles]]` array.
    """

    # A unique, descriptive name for the bundle.
    name: str
    # The bundle input(s).
    input: InputSpec
    # Files produced by the bundle command.
    output: List[str]
    # Shell command that builds the bundle.
    command: str
    # Working directory for the command.
    cwd: Path
    # Collect and report per-phase timings.
    perf: bool = False
    watch: WatchOptions = field(default_factory=WatchOptions)


@dataclass
class CommandOptions:
    """
    Options collected from the command line.

    When `config` is None the bundle is described entirely by the
    `input`/`output`/`command` options.
    """

    config: Optional[str] = None
    use_default_config: bool = False
    silent: bool = False
    input: List[str] = field(default_factory=list)
    output: List[str] = field(default_factory=list)
    command: Optional[str] = None
    watch: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    perf: bool = False
    clear_screen: bool = True


@dataclass
class LoadedConfig:
    """
    The result of one successful configuration load.
    """

    # Validated bundle configurations, in file order.
    configs: List[BundleConfig]
    # Non-fatal diagnostics collected while loading.
    warnings: List[str] = field(default_factory=list)
    # Raw text the configs were parsed from, when loaded from a file.
    source: Optional[str] = None
