"""
Unit tests for the reload coordinator state machine.

The loader is gated: every `load_config` call blocks until the test releases
it, so edits can be made while a reload is in flight. Each loaded
configuration holds one bundle named after the file content.
"""

import asyncio

import pytest
import pytest_asyncio

from conftest import FakeStartWatch, GatedLoader, settle
from buildwatch.models import CommandOptions
from buildwatch.orchestration import BuildEventRelay, ReloadCoordinator, ReloadState, WatchSessionManager
from buildwatch.output import DiagnosticBuffer, StatusPrinter
from buildwatch.validation import ConfigLoadError


def make_coordinator(path, console, loader, start_watch):
    status = StatusPrinter(console)
    diagnostics = DiagnosticBuffer(console)
    sessions = WatchSessionManager(start_watch, BuildEventRelay(status, diagnostics))
    return ReloadCoordinator(path, CommandOptions(), loader, sessions, status, diagnostics)


async def release_and_settle(loader):
    await settle()
    loader.release()
    await settle(10)


@pytest.fixture
def config_path(temp_dir):
    path = temp_dir / "buildwatch.toml"
    path.write_text("a")
    return path


@pytest.fixture
def loader():
    return GatedLoader()


@pytest_asyncio.fixture
async def started(config_path, console_capture, loader):
    """A coordinator whose initial reload of "a" has been installed."""
    start_watch = FakeStartWatch()
    coordinator = make_coordinator(config_path, console_capture, loader, start_watch)
    start_task = asyncio.create_task(coordinator.start())
    await loader.started.wait()
    loader.release()
    await start_task
    return coordinator, start_watch


def active_name(coordinator):
    return coordinator.sessions.active.configs[0].name


@pytest.mark.unit
class TestInitialLoad:
    """Test cases for the first reload cycle."""

    @pytest.mark.asyncio
    async def test_start_installs_first_config(self, started, config_path):
        coordinator, start_watch = started

        assert coordinator.state is ReloadState.IDLE
        assert coordinator.snapshot == "a"
        assert coordinator.load_count == 1
        assert active_name(coordinator) == "a"
        assert len(start_watch.sessions) == 1

    @pytest.mark.asyncio
    async def test_load_warnings_are_buffered(self, started):
        coordinator, _ = started

        assert coordinator.diagnostics.count == 1
        coordinator.diagnostics.flush()
        assert "(!) [config] loaded a" in coordinator.diagnostics.console.file.getvalue()

    @pytest.mark.asyncio
    async def test_no_reloading_notice_for_first_load(self, started, console_capture):
        assert "Reloading updated config" not in console_capture.file.getvalue()


@pytest.mark.unit
class TestDeduplication:
    """A notification whose content equals the snapshot never reloads."""

    @pytest.mark.asyncio
    async def test_unchanged_content_is_ignored(self, started):
        coordinator, start_watch = started

        coordinator.notify_change()
        coordinator.notify_change()
        await settle()

        assert coordinator.state is ReloadState.IDLE
        assert coordinator.load_count == 1
        assert len(start_watch.sessions) == 1

    @pytest.mark.asyncio
    async def test_changed_content_reloads(self, started, config_path, loader, console_capture):
        coordinator, start_watch = started

        config_path.write_text("b")
        coordinator.notify_change()
        assert coordinator.state is ReloadState.RELOADING
        await release_and_settle(loader)

        assert active_name(coordinator) == "b"
        assert start_watch.log == ["start:a", "close:a", "start:b"]
        assert "Reloading updated config..." in console_capture.file.getvalue()


@pytest.mark.unit
class TestCoalescing:
    """Notifications during a reload collapse into one trailing reload."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("burst", [1, 2, 10])
    async def test_burst_during_reload_runs_one_more_reload(self, started, config_path, loader, burst):
        coordinator, start_watch = started

        config_path.write_text("b")
        coordinator.notify_change()
        await settle()
        for i in range(burst):
            config_path.write_text(f"c{i}")
            coordinator.notify_change()
            assert coordinator.state is ReloadState.RELOADING_PENDING_RETRY

        await release_and_settle(loader)
        assert coordinator.state is ReloadState.RELOADING
        assert loader.calls == ["a", "b", f"c{burst - 1}"]

        await release_and_settle(loader)
        await coordinator.wait_idle()

        assert coordinator.state is ReloadState.IDLE
        assert coordinator.load_count == 3
        assert active_name(coordinator) == f"c{burst - 1}"
        # The superseded "b" result is never installed
        assert start_watch.log == ["start:a", "close:a", f"start:c{burst - 1}"]

    @pytest.mark.asyncio
    async def test_latest_content_wins(self, started, config_path, loader):
        coordinator, start_watch = started
        config_path.write_text("b")
        coordinator.notify_change()
        await release_and_settle(loader)

        config_path.write_text("c")
        coordinator.notify_change()
        await settle()
        config_path.write_text("b")
        coordinator.notify_change()
        await release_and_settle(loader)
        await release_and_settle(loader)

        assert loader.calls == ["a", "b", "c", "b"]
        assert active_name(coordinator) == "b"
        assert [s.configs[0].name for s in start_watch.sessions] == ["a", "b", "b"]

    @pytest.mark.asyncio
    async def test_edit_reverted_during_reload_installs_result(self, started, config_path, loader):
        coordinator, start_watch = started

        config_path.write_text("b")
        coordinator.notify_change()
        await settle()
        config_path.write_text("x")
        coordinator.notify_change()
        config_path.write_text("b")
        coordinator.notify_change()
        await release_and_settle(loader)

        assert coordinator.state is ReloadState.IDLE
        assert loader.calls == ["a", "b"]
        assert active_name(coordinator) == "b"

    @pytest.mark.asyncio
    async def test_reverted_edit_seen_by_loader_is_not_installed(self, started, config_path, loader):
        coordinator, start_watch = started

        config_path.write_text("b")
        coordinator.notify_change()
        config_path.write_text("x")
        await settle()
        coordinator.notify_change()
        config_path.write_text("b")
        coordinator.notify_change()
        await release_and_settle(loader)

        assert coordinator.state is ReloadState.RELOADING
        assert loader.calls == ["a", "x", "b"]

        await release_and_settle(loader)
        await coordinator.wait_idle()

        assert coordinator.state is ReloadState.IDLE
        assert active_name(coordinator) == "b"
        assert "start:x" not in start_watch.log
        assert start_watch.log == ["start:a", "close:a", "start:b"]

    @pytest.mark.asyncio
    async def test_failed_load_during_reverted_edit_is_retried(self, config_path, console_capture):
        loader = GatedLoader(fail_on={"x": ConfigLoadError("Invalid TOML", path=config_path)})
        start_watch = FakeStartWatch()
        coordinator = make_coordinator(config_path, console_capture, loader, start_watch)
        start_task = asyncio.create_task(coordinator.start())
        await loader.started.wait()
        loader.release()
        await start_task

        config_path.write_text("b")
        coordinator.notify_change()
        config_path.write_text("x")
        await settle()
        coordinator.notify_change()
        config_path.write_text("b")
        coordinator.notify_change()
        await release_and_settle(loader)
        await release_and_settle(loader)
        await coordinator.wait_idle()

        assert loader.calls == ["a", "x", "b"]
        assert active_name(coordinator) == "b"

    @pytest.mark.asyncio
    async def test_never_more_than_one_load_in_flight(self, started, config_path, loader):
        coordinator, _ = started

        for i in range(5):
            config_path.write_text(f"edit{i}")
            coordinator.notify_change()
            await settle()
            assert loader.pending <= 1

        while loader.pending:
            await release_and_settle(loader)
            assert loader.pending <= 1
        await coordinator.wait_idle()

        assert active_name(coordinator) == "edit4"


@pytest.mark.unit
class TestReloadErrors:
    """A failed reload is reported and the previous session keeps running."""

    @pytest.mark.asyncio
    async def test_config_error_keeps_previous_session(self, config_path, console_capture):
        loader = GatedLoader(fail_on={"broken": ConfigLoadError("Invalid TOML", path=config_path)})
        start_watch = FakeStartWatch()
        coordinator = make_coordinator(config_path, console_capture, loader, start_watch)
        start_task = asyncio.create_task(coordinator.start())
        await loader.started.wait()
        loader.release()
        await start_task

        config_path.write_text("broken")
        coordinator.notify_change()
        await release_and_settle(loader)

        assert coordinator.state is ReloadState.IDLE
        assert active_name(coordinator) == "a"
        assert start_watch.sessions[0].close_calls == 0
        assert "[!] ConfigLoadError: Invalid TOML" in console_capture.file.getvalue()

        config_path.write_text("fixed")
        coordinator.notify_change()
        await release_and_settle(loader)

        assert active_name(coordinator) == "fixed"

    @pytest.mark.asyncio
    async def test_unreadable_file_is_reported(self, started, config_path, console_capture):
        coordinator, _ = started

        config_path.unlink()
        coordinator.notify_change()
        await settle()

        assert coordinator.state is ReloadState.IDLE
        assert coordinator.load_count == 1
        assert "Could not read configuration file" in console_capture.file.getvalue()
