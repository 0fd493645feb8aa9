"""
buildwatch: Watch coordinator for command-driven bundle builds.

This package watches a TOML configuration file describing a set of bundles,
runs each bundle's build command, rebuilds when sources change and restarts
the whole watch session when the configuration file itself changes.

The package is organized into specialized modules:
- config: Locating, loading and validating the configuration file
- models: Data structures and type definitions
- validation: Input validation and error handling
- engine: Command-based build-watch sessions
- output: Status lines, error reports and buffered warnings
- orchestration: Reload coordination, session lifecycle and shutdown
- cli: Command-line interface

Usage:
    From command line:
        buildwatch --config
        python -m buildwatch.cli.main -i src/main.js -o dist/bundle.js --command "make"

    Programmatically:
        import asyncio
        from buildwatch import CommandOptions, WatchRunner, WatchRunnerConfig, get_config_path
        options = CommandOptions(config="buildwatch.toml")
        config = WatchRunnerConfig.from_options(options, get_config_path(options.config))
        exit_code = asyncio.run(WatchRunner(config).run())
"""

__version__ = "1.0.0"

# Main interfaces
from .config import get_config_path, load_config, load_config_from_command
from .orchestration import WatchRunner, WatchRunnerConfig
from .engine import CommandWatchSession, start_watch
from .cli import main_cli

# Model classes for external use
from .models import (
    BuildEvent,
    BuildEventCode,
    BundleConfig,
    CommandOptions,
    LoadedConfig,
    WatchOptions,
)

# Error taxonomy
from .validation import (
    BuildError,
    BuildWatchError,
    ConfigLoadError,
    ValidationError,
    WatchPrimitiveError,
)

__all__ = [
    "__version__",
    # Main interfaces
    "get_config_path",
    "load_config",
    "load_config_from_command",
    "WatchRunner",
    "WatchRunnerConfig",
    "CommandWatchSession",
    "start_watch",
    "main_cli",
    # Models
    "BuildEvent",
    "BuildEventCode",
    "BundleConfig",
    "CommandOptions",
    "LoadedConfig",
    "WatchOptions",
    # Errors
    "BuildError",
    "BuildWatchError",
    "ConfigLoadError",
    "ValidationError",
    "WatchPrimitiveError",
]
