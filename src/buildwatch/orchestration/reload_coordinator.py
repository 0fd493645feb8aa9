"""
Reload coordination for configuration changes.

The coordinator is a small state machine that turns change notifications into
reload cycles:

- IDLE: a notification re-reads the file; identical content is ignored,
  otherwise the new content becomes the snapshot and a reload starts.
- RELOADING: a `load_config` call is in flight. A notification only marks a
  retry as pending; it never starts a second reload.
- RELOADING_PENDING_RETRY: a reload is in flight and at least one more
  notification arrived. Further notifications change nothing.

When a reload completes with a retry pending, the file is read again. If the
content moved on, the result is discarded and the sequence restarts from the
top against the file as it is at that moment. If the edits ended where they
started, the result is installed only when it was parsed from that same
text; a result parsed from an intermediate edit is discarded and the file is
loaded once more. Any burst of edits during a slow reload therefore ends in
one trailing reload of the latest content. The restart is a loop iteration
inside the same task, so the call stack does not grow with the burst size.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..config.loader import read_config_source
from ..models.config import CommandOptions, LoadedConfig
from ..output.diagnostics import DiagnosticBuffer
from ..output.status import StatusPrinter
from ..validation import ConfigLoadError, ErrorSeverity, handle_config_error, supervise_task
from .session_manager import WatchSessionManager

logger = logging.getLogger(__name__)

LoadConfigFunc = Callable[[Path, CommandOptions], Awaitable[LoadedConfig]]


class ReloadState(Enum):
    """States of the reload coordinator."""
    IDLE = "idle"
    RELOADING = "reloading"
    RELOADING_PENDING_RETRY = "reloading_pending_retry"


class ReloadCoordinator:
    """
    Coalesces configuration change notifications into reload cycles.

    Args:
        config_path: The configuration file
        options: Command-line options passed through to `load_config`
        load_config: Async loader, raises ConfigLoadError on bad configuration
        sessions: Receives the new bundles after each successful reload
        status: Status output for reload notices and error reports
        diagnostics: Receives the warnings produced while loading
    """

    def __init__(
        self,
        config_path: Path,
        options: CommandOptions,
        load_config: LoadConfigFunc,
        sessions: WatchSessionManager,
        status: StatusPrinter,
        diagnostics: DiagnosticBuffer,
    ):
        self.config_path = config_path
        self.options = options
        self._load_config = load_config
        self.sessions = sessions
        self.status = status
        self.diagnostics = diagnostics

        self._state = ReloadState.IDLE
        self._snapshot: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        # Number of load_config calls made so far
        self.load_count = 0

    @property
    def state(self) -> ReloadState:
        return self._state

    @property
    def snapshot(self) -> Optional[str]:
        """Raw text of the most recently accepted configuration content."""
        return self._snapshot

    async def start(self) -> None:
        """Run the initial reload cycle and wait for it to settle."""
        self._begin_cycle()
        await self.wait_idle()

    def notify_change(self) -> None:
        """Handle one change notification from the config file detector."""
        if self._state is ReloadState.IDLE:
            self._begin_cycle()
            return
        if self._state is ReloadState.RELOADING:
            logger.debug("Configuration changed during reload; retry pending")
        self._state = ReloadState.RELOADING_PENDING_RETRY

    async def wait_idle(self) -> None:
        """Wait until no reload task is running."""
        while self._task is not None and not self._task.done():
            await self._task

    def _begin_cycle(self) -> None:
        content = self._read_current()
        if content is None or content == self._snapshot:
            if content is not None:
                logger.debug("Configuration content unchanged; notification ignored")
            return
        self._accept(content)
        self._task = supervise_task(
            asyncio.get_running_loop().create_task(self._reload_loop(), name="buildwatch-config-reload"),
            component="ReloadCoordinator",
            operation="reloading configuration",
        )

    def _read_current(self) -> Optional[str]:
        try:
            return read_config_source(self.config_path)
        except ConfigLoadError as e:
            self._report(e)
            return None

    def _accept(self, content: str) -> None:
        if self._snapshot is not None:
            self.status.status("\nReloading updated config...")
        self._snapshot = content
        self._state = ReloadState.RELOADING

    async def _reload_loop(self) -> None:
        while True:
            loaded: Optional[LoadedConfig] = None
            self.load_count += 1
            try:
                loaded = await self._load_config(self.config_path, self.options)
            except ConfigLoadError as e:
                self._report(e)

            if self._state is ReloadState.RELOADING_PENDING_RETRY:
                self._state = ReloadState.IDLE
                content = self._read_current()
                if content is None:
                    return
                if content != self._snapshot:
                    self._accept(content)
                    continue
                if not self._loaded_from_snapshot(loaded):
                    # The loader parsed an intermediate edit that has since
                    # been reverted; load the file as it stands now.
                    logger.debug("Reload result is stale; loading the reverted configuration")
                    self._state = ReloadState.RELOADING
                    continue
                logger.debug("Pending change did not alter the configuration")

            self._state = ReloadState.IDLE
            if loaded is not None:
                self._install(loaded)
            return

    def _loaded_from_snapshot(self, loaded: Optional[LoadedConfig]) -> bool:
        # A failed load says nothing about which content it saw
        if loaded is None:
            return False
        return loaded.source is None or loaded.source == self._snapshot

    def _install(self, loaded: LoadedConfig) -> None:
        for warning in loaded.warnings:
            self.diagnostics.add(warning, source="config")
        self.sessions.replace(loaded.configs)

    def _report(self, error: ConfigLoadError) -> None:
        handle_config_error(
            error=error,
            context=f"reloading {self.config_path}",
            severity=ErrorSeverity.WARNING,
            reraise=False,
            logger=logger,
        )
        self.status.error(error, recoverable=True)
