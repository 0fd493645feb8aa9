"""
Projection of build lifecycle events onto status output.

Events are handled in the order the active session emits them. Buffered
warnings are flushed before the status line of an ERROR or BUNDLE_END event,
so a warning is always shown ahead of the result it belongs to.
"""

import logging
from typing import Any, List, Optional

from rich.markup import escape

from .. import __version__
from ..engine.emitter import Subscription
from ..models.config import BundleConfig
from ..models.events import BuildEvent, BuildEventCode
from ..output.diagnostics import DiagnosticBuffer
from ..output.formatting import format_duration, format_inputs, format_outputs, format_timings
from ..output.status import StatusPrinter
from ..validation import BuildError

logger = logging.getLogger(__name__)


class BuildEventRelay:
    """
    Subscribes to the active session and turns its events into status lines.

    Args:
        status: Status line sink (silent / interactive aware)
        diagnostics: Warning buffer flushed at ERROR and BUNDLE_END
    """

    def __init__(self, status: StatusPrinter, diagnostics: DiagnosticBuffer):
        self.status = status
        self.diagnostics = diagnostics

    def subscribe(self, session: Any, configs: List[BundleConfig]) -> Subscription:
        self.status.configure_reset_screen(configs)
        return session.on("event", self.handle)

    def add_warning(self, message: str, source: Optional[str] = None) -> None:
        self.diagnostics.add(message, source=source)

    def handle(self, event: BuildEvent) -> None:
        code = event.code
        logger.debug(f"Build event {code.value}")

        if code is BuildEventCode.ERROR:
            self.diagnostics.flush()
            self.status.error(event.error or BuildError("Build failed"), recoverable=True)

        elif code is BuildEventCode.START:
            self.status.heading(f"buildwatch v{__version__}")

        elif code is BuildEventCode.BUNDLE_START:
            inputs = escape(format_inputs(event.input))
            outputs = escape(format_outputs(event.output or []))
            self.status.status(f"[cyan]bundles [bold]{inputs}[/bold] → [bold]{outputs}[/bold]...[/cyan]")

        elif code is BuildEventCode.BUNDLE_END:
            self.diagnostics.flush()
            outputs = escape(format_outputs(event.output or []))
            duration = format_duration(event.duration or 0)
            self.status.status(f"[green]created [bold]{outputs}[/bold] in [bold]{duration}[/bold][/green]")
            if event.timings:
                for line in format_timings(event.timings):
                    self.status.status(escape(line))

        elif code is BuildEventCode.END:
            self.status.waiting_for_changes()
