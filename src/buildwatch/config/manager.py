"""
Configuration loading entry points.

`load_config` is the collaborator the reload coordinator awaits on every
reload cycle; `load_config_from_command` builds a single bundle from the
command line when no configuration file is used.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Union

from ..models.config import BundleConfig, CommandOptions, LoadedConfig
from ..validation import ConfigLoadError, ValidationError
from .loader import parse_toml, read_config_source
from .validators import validate_bundle_configs, validate_bundle_config

logger = logging.getLogger(__name__)


def _load_config_sync(config_path: Path) -> LoadedConfig:
    source = read_config_source(config_path)
    config_data = parse_toml(source, config_path)
    try:
        configs, warnings = validate_bundle_configs(config_data, config_path.parent)
    except (ValidationError, ValueError, OSError) as e:
        # Path resolution rejects values such as embedded null bytes
        raise ConfigLoadError(str(e), path=config_path) from e

    logger.info(f"Successfully loaded configuration with {len(configs)} bundles")
    return LoadedConfig(configs=configs, warnings=warnings, source=source)


async def load_config(config_path: Union[str, Path], options: CommandOptions) -> LoadedConfig:
    """
    Load and validate the configuration file.

    The file is read and parsed on a worker thread so a slow filesystem does
    not stall the event loop.

    Args:
        config_path: Path to the configuration file
        options: Command-line options; silent mode is honoured by the caller

    Returns:
        The validated bundles and any load warnings

    Raises:
        ConfigLoadError: If the file is unreadable, malformed or invalid
    """
    logger.debug(f"Loading configuration {config_path} (silent={options.silent})")
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _load_config_sync, Path(config_path))


def load_config_from_command(options: CommandOptions, cwd: Union[str, Path, None] = None) -> LoadedConfig:
    """
    Build the configuration from command-line options alone.

    Raises:
        ConfigLoadError: If the options do not describe a valid bundle
    """
    bundle_data = {
        "name": "cli",
        "input": options.input if len(options.input) != 1 else options.input[0],
        "output": options.output,
        "command": options.command,
        "perf": options.perf,
        "watch": {
            "exclude": options.exclude,
            "clear_screen": options.clear_screen,
        },
    }
    if options.watch:
        bundle_data["watch"]["include"] = options.watch

    base_dir = Path(cwd) if cwd is not None else Path.cwd()
    warnings: List[str] = []
    try:
        config: BundleConfig = validate_bundle_config(bundle_data, 0, base_dir, warnings)
    except (ValidationError, ValueError, OSError) as e:
        raise ConfigLoadError(f"Invalid command-line bundle: {e}") from e
    return LoadedConfig(configs=[config], warnings=warnings)
