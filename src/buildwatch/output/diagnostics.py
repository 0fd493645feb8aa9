"""
Buffered non-fatal diagnostics.

Warnings produced while loading the configuration or while building are
collected here and printed together at the next flush point, so they never
interleave with the status line of the event that caused them.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """A single buffered warning."""
    message: str
    source: Optional[str] = None


class DiagnosticBuffer:
    """
    Accumulates warnings between flush points.

    `flush()` prints and clears everything added since the previous flush,
    in the order it was added. A diagnostic is printed at most once.
    """

    def __init__(self, console: Console, silent: bool = False):
        self.console = console
        self.silent = silent
        self._pending: List[Diagnostic] = []

    @property
    def count(self) -> int:
        return len(self._pending)

    def add(self, message: str, source: Optional[str] = None) -> None:
        logger.debug(f"Buffered warning from {source or 'buildwatch'}: {message}")
        self._pending.append(Diagnostic(message=message, source=source))

    def flush(self) -> None:
        if not self._pending:
            return
        pending, self._pending = self._pending, []
        if self.silent:
            return

        for diagnostic in pending:
            prefix = escape(f"[{diagnostic.source}] ") if diagnostic.source else ""
            self.console.print(f"[bold yellow](!)[/bold yellow] {prefix}{escape(diagnostic.message)}")
        self.console.print("")
