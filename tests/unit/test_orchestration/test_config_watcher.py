"""
Unit tests for the configuration file change detector.

`watchfiles.awatch` is replaced with an async generator that replays
prepared batches of changes.
"""

import asyncio

import pytest
from watchfiles import Change

from buildwatch.models import ChangeKind
from buildwatch.orchestration import ConfigChangeDetector
from buildwatch.validation import WatchPrimitiveError


def replay(*batches, before_each=None):
    """An `awatch` replacement yielding `batches`, then waiting until stopped."""
    calls = []

    async def watch(*paths, stop_event=None, **kwargs):
        calls.append({"paths": paths, **kwargs})
        for batch in batches:
            await asyncio.sleep(0)
            if before_each is not None:
                before_each()
            yield batch
        await stop_event.wait()

    watch.calls = calls
    return watch


@pytest.fixture
def watched_file(temp_dir):
    path = temp_dir / "buildwatch.toml"
    path.write_text("[[bundles]]\n")
    return path


@pytest.mark.unit
class TestConfigChangeDetector:
    """Test cases for change notifications of the configuration file."""

    @pytest.mark.asyncio
    async def test_observe_maps_change_kinds(self, watched_file):
        path = str(watched_file)
        watch = replay({(Change.modified, path)}, {(Change.deleted, path)}, {(Change.added, path)})
        detector = ConfigChangeDetector(watched_file, watch_func=watch)
        kinds = []

        async for event in detector.observe():
            kinds.append(event.kind)
            if len(kinds) == 3:
                detector.close()
                break

        assert kinds == [ChangeKind.CHANGED, ChangeKind.RENAMED, ChangeKind.CHANGED]

    @pytest.mark.asyncio
    async def test_run_forwards_only_content_changes(self, watched_file):
        path = str(watched_file)
        watch = replay({(Change.modified, path)}, {(Change.deleted, path)}, {(Change.modified, path)})
        detector = ConfigChangeDetector(watched_file, watch_func=watch)
        notifications = []

        def on_change():
            notifications.append(True)
            if len(notifications) == 2:
                detector.close()

        await asyncio.wait_for(detector.run(on_change), 5)

        assert len(notifications) == 2

    @pytest.mark.asyncio
    async def test_watches_parent_directory_non_recursively(self, watched_file):
        watch = replay()
        detector = ConfigChangeDetector(watched_file, watch_func=watch)

        task = asyncio.create_task(detector.run(lambda: None))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        detector.close()
        await asyncio.wait_for(task, 5)

        [call] = watch.calls
        assert call["paths"] == (watched_file.parent,)
        assert call["recursive"] is False
        assert call["debounce"] == 50

    def test_filter_matches_only_the_file(self, watched_file):
        detector = ConfigChangeDetector(watched_file)

        assert detector._is_watched_path(Change.modified, str(watched_file)) is True
        assert detector._is_watched_path(Change.modified, str(watched_file.parent / "other.toml")) is False

    @pytest.mark.asyncio
    async def test_missing_file_at_start(self, temp_dir):
        detector = ConfigChangeDetector(temp_dir / "missing.toml", watch_func=replay())

        with pytest.raises(WatchPrimitiveError):
            await detector.run(lambda: None)

    @pytest.mark.asyncio
    async def test_file_removed_while_watching(self, watched_file):
        watch = replay({(Change.deleted, str(watched_file))}, before_each=watched_file.unlink)
        detector = ConfigChangeDetector(watched_file, watch_func=watch)

        with pytest.raises(WatchPrimitiveError) as exc_info:
            await asyncio.wait_for(detector.run(lambda: None), 5)

        assert "removed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_watcher_failure_is_a_primitive_error(self, watched_file):
        async def broken(*paths, **kwargs):
            raise OSError("too many open files")
            yield

        detector = ConfigChangeDetector(watched_file, watch_func=broken)

        with pytest.raises(WatchPrimitiveError) as exc_info:
            await detector.run(lambda: None)

        assert "too many open files" in str(exc_info.value)

    def test_close_is_idempotent(self, watched_file):
        detector = ConfigChangeDetector(watched_file)

        detector.close()
        detector.close()

        assert detector.closed is True
