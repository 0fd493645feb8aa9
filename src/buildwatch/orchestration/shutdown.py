"""
Shutdown coordination.

Several independent triggers can end a watch run:

- an exit request: SIGINT / SIGTERM, or interpreter exit (`atexit`)
- an uncaught error: the event loop exception handler, or an exception
  escaping the main thread (`sys.excepthook`) or a worker thread
  (`threading.excepthook`)
- end-of-input when stdin is a pipe

All of them converge on `close()`, which runs exactly once. The first trigger
decides the exit code; later triggers are no-ops.
"""

import asyncio
import atexit
import logging
import sys
import threading
from typing import Any, Dict, Optional

from ..output.status import StatusPrinter
from .config_watcher import ConfigChangeDetector
from .session_manager import WatchSessionManager
from .shared_state import TimeoutConstants
from .signal_handler import SignalHandler

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """
    Owns the termination triggers and the single cleanup routine.

    Args:
        status: Used to report the error that caused a fatal shutdown
        sessions: Manager whose active session is closed on shutdown
        watch_stdin: Shut down on end-of-input (only meaningful for pipes)
        stdin: Stream to watch for end-of-input (defaults to `sys.stdin`)
    """

    def __init__(
        self,
        status: StatusPrinter,
        sessions: WatchSessionManager,
        watch_stdin: bool = False,
        stdin: Any = None,
    ):
        self.status = status
        self.sessions = sessions
        self.watch_stdin = watch_stdin
        self._stdin = stdin
        self.config_watcher: Optional[ConfigChangeDetector] = None
        self.signal_handler = SignalHandler(self.request_exit)

        self._closed = False
        self._installed = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._exit_future: Optional[asyncio.Future] = None
        self._exit_code: Optional[int] = None
        self._stdin_task: Optional[asyncio.Task] = None
        self._previous_exception_handler = None
        self._previous_sys_hook = None
        self._previous_threading_hook = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def exit_code(self) -> Optional[int]:
        return self._exit_code

    def install(self) -> None:
        """Register all triggers on the running event loop."""
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._exit_future = loop.create_future()

        self.signal_handler.setup_signal_handlers(loop)
        atexit.register(self.request_exit)

        self._previous_exception_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._on_loop_exception)
        self._previous_threading_hook = threading.excepthook
        threading.excepthook = self._on_thread_exception
        self._previous_sys_hook = sys.excepthook
        sys.excepthook = self._on_sys_exception

        if self.watch_stdin:
            self._stdin_task = loop.create_task(self._watch_stdin(), name="buildwatch-stdin")
        self._installed = True
        logger.debug(f"Shutdown triggers installed (stdin watched: {self.watch_stdin})")

    async def wait(self) -> int:
        """Wait for shutdown and return the exit code."""
        if self._exit_future is None:
            raise RuntimeError("ShutdownCoordinator.install() must be called first")
        return await self._exit_future

    def request_exit(self) -> None:
        self.close()

    def close(self, error: Optional[BaseException] = None) -> None:
        """
        Run the cleanup once: deregister the error and stdin listeners, close
        the active session and the config watch, then resolve the exit code.
        """
        if self._closed:
            if error is not None:
                logger.debug(f"Shutdown already in progress; ignoring {type(error).__name__}: {error}")
            return
        self._closed = True
        logger.info("Shutting down" + (f" after {type(error).__name__}" if error is not None else ""))

        self._deregister_triggers()
        self._close_resource("active watch session", self.sessions.shutdown)
        if self.config_watcher is not None:
            self._close_resource("config file watch", self.config_watcher.close)

        if error is not None:
            self.status.error(error, recoverable=False)
            self._exit_code = 1
        else:
            self._exit_code = 0

        if self._exit_future is not None and not self._exit_future.done() and not self._loop.is_closed():
            self._exit_future.set_result(self._exit_code)

    def _close_resource(self, name: str, close_func) -> None:
        try:
            close_func()
        except Exception as e:
            logger.error(f"Error while closing {name}: {e}", exc_info=True)

    def _deregister_triggers(self) -> None:
        if not self._installed:
            return
        self._installed = False

        atexit.unregister(self.request_exit)
        if threading.excepthook == self._on_thread_exception:
            threading.excepthook = self._previous_threading_hook
        if sys.excepthook == self._on_sys_exception:
            sys.excepthook = self._previous_sys_hook
        if self._loop is not None and not self._loop.is_closed():
            self._loop.set_exception_handler(self._previous_exception_handler)
        self.signal_handler.cleanup_signal_handlers()

        task = self._stdin_task
        self._stdin_task = None
        if task is not None and not task.done() and task is not self._current_task():
            task.cancel()

    def _current_task(self) -> Optional[asyncio.Task]:
        try:
            return asyncio.current_task()
        except RuntimeError:
            return None

    def _on_loop_exception(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        error = context.get("exception")
        if error is None:
            error = RuntimeError(context.get("message", "Unhandled error in event loop"))
        self.close(error)

    def _on_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if issubclass(args.exc_type, SystemExit):
            # A thread calling sys.exit() only ends that thread
            self._previous_threading_hook(args)
            return
        error = args.exc_value or RuntimeError(f"Unhandled {args.exc_type.__name__} in thread")
        self._close_from_any_thread(error)

    def _on_sys_exception(self, exc_type, exc_value, exc_traceback) -> None:
        self._close_from_any_thread(exc_value or RuntimeError(f"Unhandled {exc_type.__name__}"))

    def _close_from_any_thread(self, error: BaseException) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.close, error)
        else:
            self.close(error)

    async def _watch_stdin(self) -> None:
        loop = asyncio.get_running_loop()
        stream = self._stdin if self._stdin is not None else sys.stdin
        reader = asyncio.StreamReader()
        try:
            transport, _ = await loop.connect_read_pipe(
                lambda: asyncio.StreamReaderProtocol(reader), stream
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot watch stdin for end-of-input: {e}")
            return

        try:
            while await reader.read(TimeoutConstants.STDIN_READ_CHUNK):
                pass
        finally:
            transport.close()
        logger.info("End of input on stdin")
        self.close()
