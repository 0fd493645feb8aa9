"""
Data models for the watch coordinator.

Configuration Models:
- Bundle definitions and their watch settings
- Command-line options
- The result of a configuration load

Event Models:
- Build lifecycle events emitted by watch sessions
- Raw change notifications for the configuration file

All models are dataclasses with type hints.
"""

from .config import BundleConfig, CommandOptions, InputSpec, LoadedConfig, WatchOptions
from .events import BuildEvent, BuildEventCode, ChangeKind, RawChangeEvent

__all__ = [
    # Configuration
    "BundleConfig",
    "CommandOptions",
    "InputSpec",
    "LoadedConfig",
    "WatchOptions",
    # Events
    "BuildEvent",
    "BuildEventCode",
    "ChangeKind",
    "RawChangeEvent",
]
