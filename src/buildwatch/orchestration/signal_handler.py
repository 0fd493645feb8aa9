"""
Signal handling for the orchestration module.

Routes SIGINT and SIGTERM to the shutdown coordinator through the event
loop, and restores the previous dispositions on cleanup.
"""

import asyncio
import logging
import signal
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Manages signal registration and cleanup for one event loop.

    Args:
        on_signal: Called on the event loop when a handled signal arrives
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, on_signal: Callable[[], None]):
        self._on_signal = on_signal
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._installed: List[signal.Signals] = []

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Register the handlers on `loop`; unsupported platforms only log a warning."""
        self._loop = loop
        for signum in self.SIGNALS:
            try:
                loop.add_signal_handler(signum, self._handle_signal, signum)
                self._installed.append(signum)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning(f"Failed to set up handler for {signum.name}: {e}")
        logger.debug(f"Signal handlers set up for {[s.name for s in self._installed]}")

    def cleanup_signal_handlers(self) -> None:
        """Remove the handlers installed by `setup_signal_handlers`."""
        if self._loop is None or not self._installed:
            return
        installed, self._installed = self._installed, []
        if self._loop.is_closed():
            return
        for signum in installed:
            try:
                self._loop.remove_signal_handler(signum)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning(f"Failed to restore handler for {signum.name}: {e}")
        logger.debug("Signal handlers restored")

    def _handle_signal(self, signum: signal.Signals) -> None:
        logger.info(f"Signal {signal.strsignal(signum)} received. Initiating shutdown...")
        self._on_signal()
