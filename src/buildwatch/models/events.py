"""
Event data models.

This module defines the build lifecycle events emitted by a watch session and
the raw change notifications produced by the configuration file watcher.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .config import InputSpec


class BuildEventCode(Enum):
    """Lifecycle event codes emitted by a watch session."""
    START = "START"
    BUNDLE_START = "BUNDLE_START"
    BUNDLE_END = "BUNDLE_END"
    END = "END"
    ERROR = "ERROR"


@dataclass
class BuildEvent:
    """
    A single build lifecycle event.

    Only the fields relevant to the event code are populated: `input` and
    `output` for bundle events, `duration` (milliseconds) and `timings` for
    `BUNDLE_END`, `error` for `ERROR`.
    """

    code: BuildEventCode
    input: Optional[InputSpec] = None
    output: Optional[List[str]] = None
    duration: Optional[float] = None
    timings: Optional[Dict[str, float]] = None
    error: Optional[BaseException] = None


class ChangeKind(Enum):
    """Kinds of raw filesystem notifications for the watched config file."""
    CHANGED = "changed"
    RENAMED = "renamed"
    OTHER = "other"


@dataclass(frozen=True)
class RawChangeEvent:
    """A raw notification for the watched configuration file."""

    kind: ChangeKind
    path: str
