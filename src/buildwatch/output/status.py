"""
Line-oriented status output for the watch coordinator.

Status lines go to stderr through a rich Console. In silent mode every
status line is suppressed; error reports are always printed.
"""

import logging
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.traceback import Traceback

from ..models.config import BundleConfig
from ..validation import BuildError, ConfigLoadError

logger = logging.getLogger(__name__)


def create_console(force_terminal: Optional[bool] = None) -> Console:
    """Create the stderr console used for all operator-facing output."""
    return Console(stderr=True, highlight=False, force_terminal=force_terminal)


class StatusPrinter:
    """
    Emits status lines, build headings and error reports.

    Args:
        console: Console to print to
        silent: Suppress all status lines
        interactive: Whether the output is an interactive terminal
    """

    def __init__(self, console: Console, silent: bool = False, interactive: bool = False):
        self.console = console
        self.silent = silent
        self.interactive = interactive
        self._clear_screen = False
        self._heading_shown = False

    def configure_reset_screen(self, configs: List[BundleConfig]) -> None:
        """
        Decide how build headings are shown for the given bundles.

        The screen is cleared before every heading on an interactive terminal
        unless a bundle disables it; otherwise the heading is shown only once.
        """
        self._clear_screen = self.interactive and all(
            config.watch.clear_screen for config in configs
        )

    def status(self, markup: str) -> None:
        if self.silent:
            return
        self.console.print(markup)

    def heading(self, text: str) -> None:
        if self.silent:
            return
        if self._clear_screen:
            self.console.clear()
        elif self._heading_shown:
            return
        self._heading_shown = True
        self.console.print(f"[underline]{escape(text)}[/underline]")

    def waiting_for_changes(self) -> None:
        if self.silent or not self.interactive:
            return
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.console.print(f"\n\\[{timestamp}] waiting for changes...")

    def error(self, error: BaseException, recoverable: bool = True) -> None:
        """
        Print an error report.

        Recoverable errors get a one-line summary plus context; fatal errors
        also get the traceback when one is available.
        """
        name = type(error).__name__
        message = str(error) or name
        self.console.print(f"[bold red]\\[!] {escape(name)}: {escape(message)}[/bold red]")

        if isinstance(error, ConfigLoadError) and error.path:
            self.console.print(f"[dim]{escape(error.path)}[/dim]")
        elif isinstance(error, BuildError):
            if error.bundle:
                self.console.print(f"[dim]bundle: {escape(error.bundle)}[/dim]")
            if error.command:
                self.console.print(f"[dim]command: {escape(error.command)}[/dim]")

        if not recoverable and error.__traceback__ is not None:
            self.console.print(Traceback.from_exception(type(error), error, error.__traceback__))
        self.console.print("")
