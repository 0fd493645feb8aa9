"""
Configuration management for the buildwatch package.

This module provides locating, loading and validating the TOML
configuration file, and building a configuration from the command line.
"""

from .loader import (
    DEFAULT_CONFIG_NAMES,
    get_config_path,
    load_toml_file,
    parse_toml,
    read_config_source,
)
from .manager import load_config, load_config_from_command
from .validators import validate_bundle_config, validate_bundle_configs

__all__ = [
    # Main interface
    "get_config_path",
    "load_config",
    "load_config_from_command",
    # Advanced interface
    "DEFAULT_CONFIG_NAMES",
    "load_toml_file",
    "parse_toml",
    "read_config_source",
    "validate_bundle_config",
    "validate_bundle_configs",
]
