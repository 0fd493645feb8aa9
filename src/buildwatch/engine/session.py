"""
Command-based watch session.

A session runs each bundle's shell command, emits the build lifecycle events
for the run, and reruns when any watched source path changes. It is the
concrete implementation of the `start_watch(configs) -> WatchSession`
collaborator used by the session manager.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from watchfiles import DefaultFilter, awatch

from ..models.config import BundleConfig
from ..models.events import BuildEvent, BuildEventCode
from ..validation import BuildError, WatchPrimitiveError, supervise_task
from .emitter import EventEmitter, Subscription
from .process_manager import terminate_process_tree

logger = logging.getLogger(__name__)

WarningCallback = Callable[[str, Optional[str]], None]

# Number of trailing stderr lines quoted in a BuildError.
STDERR_TAIL_LINES = 10


class CommandWatchSession:
    """
    A live build loop over a fixed set of bundle configurations.

    Listeners subscribe with `on("event", listener)` and receive `BuildEvent`
    objects in emission order. After `close()` no further events are emitted.

    Args:
        configs: Bundles built by this session, in order
        on_warning: Receives non-fatal warnings (message, bundle name)
        watch_func: Source watcher, `watchfiles.awatch` compatible
    """

    def __init__(
        self,
        configs: List[BundleConfig],
        on_warning: Optional[WarningCallback] = None,
        watch_func: Optional[Callable[..., Any]] = None,
    ):
        self.configs = configs
        self._on_warning = on_warning
        self._watch_func = watch_func or awatch
        self._emitter = EventEmitter()
        self._stop_event = asyncio.Event()
        self._closed = False
        self._rerun_requested = False
        self._build_task: Optional[asyncio.Task] = None
        self._watch_task: Optional[asyncio.Task] = None
        self._running: Dict[int, str] = {}

    @property
    def closed(self) -> bool:
        return self._closed

    def on(self, name: str, listener: Callable[..., Any]) -> Subscription:
        return self._emitter.on(name, listener)

    def start(self) -> None:
        """Schedule the initial build and start watching sources."""
        loop = asyncio.get_running_loop()
        self._schedule_build(loop)
        if self.watch_paths:
            self._watch_task = supervise_task(
                loop.create_task(self._watch_sources(), name="buildwatch-source-watch"),
                component="CommandWatchSession",
                operation="watching source files",
            )
        logger.info(f"Watch session started for {len(self.configs)} bundles")

    def invalidate(self) -> None:
        """Request a rebuild; a change during a running build queues exactly one rerun."""
        if self._closed:
            return
        if self._build_task is not None and not self._build_task.done():
            self._rerun_requested = True
            return
        self._schedule_build(asyncio.get_running_loop())

    def close(self) -> None:
        """
        Stop the session. Idempotent and non-blocking: running commands are
        terminated on a worker thread.
        """
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()
        for task in (self._build_task, self._watch_task):
            if task is not None and not task.done():
                task.cancel()

        running, self._running = self._running, {}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        for pid, name in running.items():
            if loop is not None:
                loop.run_in_executor(None, terminate_process_tree, pid, name)
            else:
                terminate_process_tree(pid, name)

        self._emitter.emit("close")
        self._emitter.remove_all_listeners()
        logger.info("Watch session closed")

    @property
    def watch_paths(self) -> List[str]:
        return sorted({path for config in self.configs for path in config.watch.include})

    def _schedule_build(self, loop: asyncio.AbstractEventLoop) -> None:
        self._build_task = supervise_task(
            loop.create_task(self._run_builds(), name="buildwatch-build"),
            component="CommandWatchSession",
            operation="building bundles",
        )

    def _emit(self, event: BuildEvent) -> None:
        if self._closed:
            return
        self._emitter.emit("event", event)

    def _warn(self, message: str, bundle: Optional[str]) -> None:
        if self._on_warning is not None:
            self._on_warning(message, bundle)

    async def _run_builds(self) -> None:
        while not self._closed:
            self._rerun_requested = False
            await self._build_once()
            if not self._rerun_requested:
                return

    async def _build_once(self) -> None:
        self._emit(BuildEvent(BuildEventCode.START))
        for config in self.configs:
            started = time.perf_counter()
            self._emit(BuildEvent(BuildEventCode.BUNDLE_START, input=config.input, output=config.output))
            try:
                timings = await self._run_command(config)
            except BuildError as e:
                self._emit(BuildEvent(BuildEventCode.ERROR, error=e))
                return
            self._emit(BuildEvent(
                BuildEventCode.BUNDLE_END,
                input=config.input,
                output=config.output,
                duration=(time.perf_counter() - started) * 1000,
                timings=timings if config.perf else None,
            ))
        self._emit(BuildEvent(BuildEventCode.END))

    async def _run_command(self, config: BundleConfig) -> Dict[str, float]:
        started = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_shell(
                config.command,
                cwd=config.cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise BuildError(
                f"Could not start command for bundle '{config.name}': {e}",
                bundle=config.name,
                command=config.command,
            ) from e
        spawned = time.perf_counter()

        self._running[process.pid] = f"bundle '{config.name}'"
        try:
            _, stderr = await process.communicate()
        finally:
            self._running.pop(process.pid, None)
        finished = time.perf_counter()

        stderr_text = stderr.decode("utf-8", errors="replace").strip()
        if process.returncode != 0:
            detail = "\n".join(stderr_text.splitlines()[-STDERR_TAIL_LINES:])
            message = f"Command for bundle '{config.name}' exited with code {process.returncode}"
            raise BuildError(
                f"{message}\n{detail}" if detail else message,
                bundle=config.name,
                command=config.command,
                exit_code=process.returncode,
            )
        if stderr_text:
            self._warn(stderr_text, config.name)

        return {
            "# spawn command": (spawned - started) * 1000,
            "# run command": (finished - spawned) * 1000,
        }

    def _build_watch_filter(self) -> Callable[[Any, str], bool]:
        default_filter = DefaultFilter()
        outputs = {str(Path(output).resolve()) for config in self.configs for output in config.output}
        excludes = [pattern for config in self.configs for pattern in config.watch.exclude]

        def watch_filter(change: Any, path: str) -> bool:
            if not default_filter(change, path):
                return False
            if str(Path(path).resolve()) in outputs:
                return False
            return not any(Path(path).match(pattern) for pattern in excludes)

        return watch_filter

    async def _watch_sources(self) -> None:
        debounce = max(min(config.watch.build_delay for config in self.configs), 50)
        try:
            async for changes in self._watch_func(
                *self.watch_paths,
                watch_filter=self._build_watch_filter(),
                stop_event=self._stop_event,
                debounce=debounce,
            ):
                logger.debug(f"Source changes: {sorted(path for _, path in changes)}")
                self.invalidate()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._closed:
                return
            raise WatchPrimitiveError(f"Source watcher failed: {e}") from e


def start_watch(
    configs: List[BundleConfig],
    on_warning: Optional[WarningCallback] = None,
) -> CommandWatchSession:
    """Create and start a watch session bound to `configs`."""
    session = CommandWatchSession(configs, on_warning=on_warning)
    session.start()
    return session
