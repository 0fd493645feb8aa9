"""
Text formatting helpers for status output.
"""

import os
from typing import Dict, List, Optional

from ..models.config import InputSpec


def format_duration(milliseconds: float) -> str:
    """Format a duration in a compact human form: `850ms`, `1.2s`, `2m 5s`.

    Args:
        milliseconds: Duration in milliseconds.

    Returns:
        The formatted duration.
    """
    if round(milliseconds) < 1000:
        return f"{max(int(round(milliseconds)), 0)}ms"

    seconds = milliseconds / 1000
    if seconds < 60:
        text = f"{seconds:.1f}".rstrip("0").rstrip(".")
        return f"{text}s"

    days, remainder = divmod(int(seconds), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = [
        f"{value}{unit}"
        for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"), (secs, "s"))
        if value
    ]
    return " ".join(parts)


def relative_id(path: str, cwd: Optional[str] = None) -> str:
    """Show absolute paths relative to the working directory.

    Relative paths and paths on another drive are returned unchanged.
    """
    if not os.path.isabs(path):
        return path
    try:
        return os.path.relpath(path, cwd or os.getcwd())
    except ValueError:
        return path


def format_inputs(input_spec: InputSpec) -> str:
    """Normalize a bundle input specification to a single display string.

    A single path is shown as-is, a list keeps its order, and a mapping is
    projected to its target paths. Multiple entries are joined with ", ".
    """
    if isinstance(input_spec, str):
        return input_spec
    if isinstance(input_spec, dict):
        return ", ".join(input_spec.values())
    return ", ".join(input_spec)


def format_outputs(outputs: List[str], cwd: Optional[str] = None) -> str:
    return ", ".join(relative_id(output, cwd) for output in outputs)


def format_timings(timings: Dict[str, float]) -> List[str]:
    """One report line per timing label, in insertion order."""
    return [f"{label}: {round(elapsed)}ms" for label, elapsed in timings.items()]
