"""
Watching the configuration file for changes.

The detector turns filesystem notifications for a single file into a stream
of `RawChangeEvent`s and forwards only content-change notifications. It does
not compare content; filesystem watchers may fire several times for one edit
or with no actual change, and the reload coordinator deduplicates by content.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional, Union

from watchfiles import Change, awatch

from ..models.events import ChangeKind, RawChangeEvent
from ..validation import WatchPrimitiveError
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)

# An editor's atomic save replaces the file, which shows up as `added` for
# the path. The content may differ, so it counts as a change.
_CHANGE_KINDS = {
    Change.modified: ChangeKind.CHANGED,
    Change.added: ChangeKind.CHANGED,
    Change.deleted: ChangeKind.RENAMED,
}


class ConfigChangeDetector:
    """
    Single-file change detector built on `watchfiles.awatch`.

    The parent directory is watched and filtered down to the file, so the
    watch survives the file being replaced.

    Args:
        path: Configuration file to watch
        watch_func: `watchfiles.awatch` compatible watcher
    """

    def __init__(self, path: Union[str, Path], watch_func: Optional[Callable[..., Any]] = None):
        self.path = Path(path).resolve()
        self._watch_func = watch_func or awatch
        self._stop_event = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_watched_path(self, _change: Change, changed_path: str) -> bool:
        return Path(changed_path).resolve() == self.path

    async def observe(self) -> AsyncIterator[RawChangeEvent]:
        """
        Yield one RawChangeEvent per underlying notification.

        Raises:
            WatchPrimitiveError: If the file is missing or the watcher fails
        """
        if not self.path.is_file():
            raise WatchPrimitiveError(f"Configuration file not found: {self.path}")

        try:
            async for changes in self._watch_func(
                self.path.parent,
                watch_filter=self._is_watched_path,
                stop_event=self._stop_event,
                debounce=TimeoutConstants.CONFIG_WATCH_DEBOUNCE_MS,
                recursive=False,
            ):
                if self._closed:
                    return
                if not self.path.is_file():
                    raise WatchPrimitiveError(f"Configuration file was removed: {self.path}")
                for change, changed_path in changes:
                    yield RawChangeEvent(
                        kind=_CHANGE_KINDS.get(change, ChangeKind.OTHER),
                        path=changed_path,
                    )
        except WatchPrimitiveError:
            raise
        except Exception as e:
            raise WatchPrimitiveError(f"Watching {self.path} failed: {e}") from e

    async def changes(self) -> AsyncIterator[RawChangeEvent]:
        """Only the notifications that may carry a content change."""
        async for event in self.observe():
            if event.kind is ChangeKind.CHANGED:
                yield event
            else:
                logger.debug(f"Ignoring {event.kind.value} notification for {event.path}")

    async def run(self, on_change: Callable[[], None]) -> None:
        """Call `on_change` for every change notification until closed."""
        logger.info(f"Watching configuration file {self.path}")
        async for _ in self.changes():
            on_change()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()
        logger.debug(f"Stopped watching {self.path}")
