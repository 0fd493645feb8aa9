"""
Configuration file loading utilities.

This module handles locating the configuration file and the low-level
reading and parsing of its TOML content.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..validation import ConfigLoadError, ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

# Tried in order when `--config` is given without a file name.
DEFAULT_CONFIG_NAMES = ("buildwatch.config.toml", "buildwatch.toml")


def get_config_path(config: Optional[str], cwd: Optional[Path] = None) -> Path:
    """
    Resolve the configuration file to use.

    Args:
        config: Explicit file name from the command line, or None to pick the
            first existing default name
        cwd: Directory relative paths are resolved against (defaults to the
            current working directory)

    Returns:
        Absolute path of an existing configuration file

    Raises:
        ConfigLoadError: If no matching file exists
    """
    base_dir = cwd or Path.cwd()

    if config is None:
        for name in DEFAULT_CONFIG_NAMES:
            candidate = base_dir / name
            if candidate.is_file():
                logger.debug(f"Using default configuration file: {candidate}")
                return candidate.resolve()
        raise ConfigLoadError(
            f"Cannot find a default configuration file ({', '.join(DEFAULT_CONFIG_NAMES)}) in {base_dir}",
            path=base_dir,
        )

    candidate = Path(config)
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    if not candidate.is_file():
        raise ConfigLoadError(f"Cannot find configuration file: {config}", path=candidate)
    return candidate.resolve()


def read_config_source(file_path: Union[str, Path]) -> str:
    """
    Read the raw text of the configuration file.

    Raises:
        ConfigLoadError: If the file cannot be read
    """
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"Could not read configuration file: {e}", path=file_path) from e


def parse_toml(source: str, file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Parse TOML text with error handling.

    Args:
        source: Raw TOML text
        file_path: Path the text was read from, used in error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        ConfigLoadError: If the text is not valid TOML
    """
    try:
        return tomllib.loads(source)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {file_path}",
            severity=ErrorSeverity.WARNING,
            reraise=False,
            logger=logger
        )
        raise ConfigLoadError(f"Invalid TOML: {e}", path=file_path) from e


def load_toml_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load and parse a TOML configuration file.

    Raises:
        ConfigLoadError: If the file cannot be read or parsed
    """
    logger.info(f"Loading configuration from: {file_path}")
    return parse_toml(read_config_source(file_path), file_path)
