"""
Top-level watch runner.

Wires the orchestration components together for one watch run and waits
until a shutdown trigger fires.
"""

import asyncio
import logging
import os
from typing import Any, Callable, Optional

from rich.console import Console

from ..config.manager import load_config, load_config_from_command
from ..engine.session import start_watch
from ..output.diagnostics import DiagnosticBuffer
from ..output.status import StatusPrinter, create_console
from ..validation import supervise_task
from .config_watcher import ConfigChangeDetector
from .event_relay import BuildEventRelay
from .reload_coordinator import LoadConfigFunc, ReloadCoordinator
from .session_manager import StartWatchFunc, WatchSessionManager
from .shared_state import WatchRunnerConfig
from .shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)

WATCH_ENV_VAR = "BUILDWATCH_WATCH"


class WatchRunner:
    """
    Coordinates a complete watch run.

    With a configuration file, the file is watched and every genuine change
    goes through the reload coordinator. Without one, the bundle described by
    the command-line options is started once.

    Args:
        config: Runner configuration
        console: Console for all operator-facing output
        start_watch: Build-watch session factory
        load_config: Async configuration loader
        watch_func: `watchfiles.awatch` compatible watcher for the config file
        stdin: Stream watched for end-of-input when it is not a terminal
    """

    def __init__(
        self,
        config: WatchRunnerConfig,
        console: Optional[Console] = None,
        start_watch: StartWatchFunc = start_watch,
        load_config: LoadConfigFunc = load_config,
        watch_func: Optional[Callable[..., Any]] = None,
        stdin: Any = None,
    ):
        self.config = config
        self.console = console or create_console()
        self._load_config = load_config
        self._watch_func = watch_func

        self.status = StatusPrinter(self.console, silent=config.silent, interactive=config.interactive)
        self.diagnostics = DiagnosticBuffer(self.console, silent=config.silent)
        self.relay = BuildEventRelay(self.status, self.diagnostics)
        self.sessions = WatchSessionManager(start_watch, self.relay)
        self.shutdown = ShutdownCoordinator(
            self.status,
            self.sessions,
            watch_stdin=not config.stdin_is_tty,
            stdin=stdin,
        )
        self.config_watcher: Optional[ConfigChangeDetector] = None
        self.reloader: Optional[ReloadCoordinator] = None

    async def run(self) -> int:
        """
        Execute the watch run until shutdown.

        Returns:
            Process exit code: 0 on a normal shutdown, 1 after a fatal error
        """
        os.environ[WATCH_ENV_VAR] = "true"
        self.shutdown.install()

        try:
            if self.config.config_path is not None:
                await self._run_with_config_file()
            else:
                self._run_from_command()
        except Exception as e:
            logger.debug(f"Startup failed: {type(e).__name__}: {e}")
            self.shutdown.close(e)

        return await self.shutdown.wait()

    async def _run_with_config_file(self) -> None:
        config_path = self.config.config_path
        self.config_watcher = ConfigChangeDetector(config_path, watch_func=self._watch_func)
        self.shutdown.config_watcher = self.config_watcher

        self.reloader = ReloadCoordinator(
            config_path,
            self.config.options,
            self._load_config,
            self.sessions,
            self.status,
            self.diagnostics,
        )
        supervise_task(
            asyncio.get_running_loop().create_task(
                self.config_watcher.run(self.reloader.notify_change), name="buildwatch-config-watch"
            ),
            component="ConfigChangeDetector",
            operation="watching the configuration file",
        )
        await self.reloader.start()

    def _run_from_command(self) -> None:
        loaded = load_config_from_command(self.config.options)
        for warning in loaded.warnings:
            self.diagnostics.add(warning, source="config")
        self.sessions.replace(loaded.configs)
