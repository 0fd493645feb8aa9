"""
Pytest configuration and shared fixtures for the buildwatch test suite.

This module provides common fixtures, test doubles, and configuration
for all test modules in the buildwatch project.
"""

import asyncio
import io
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
from rich.console import Console

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from buildwatch.engine.emitter import EventEmitter, Subscription  # noqa: E402
from buildwatch.models import BundleConfig, WatchOptions  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path).resolve()
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_bundle_data(temp_dir):
    """One valid `[[bundles]]` entry whose input directory exists."""
    (temp_dir / "src").mkdir()
    (temp_dir / "src" / "main.js").write_text("export default 1;\n")
    return {
        "name": "app",
        "input": "src/main.js",
        "output": ["dist/app.js"],
        "command": "true",
    }


@pytest.fixture
def config_file(temp_dir, sample_bundle_data):
    """Write a configuration file with one bundle and return its path."""
    import toml

    path = temp_dir / "buildwatch.toml"
    with open(path, "w") as f:
        toml.dump({"bundles": [sample_bundle_data]}, f)
    return path


@pytest.fixture
def console_capture():
    """A console writing plain text into memory; read it with `.file.getvalue()`."""
    return Console(file=io.StringIO(), force_terminal=False, width=200, highlight=False)


def make_bundle(name: str = "app", cwd: Optional[Path] = None, **overrides: Any) -> BundleConfig:
    """Build a BundleConfig without going through validation."""
    watch = overrides.pop("watch", None) or WatchOptions()
    return BundleConfig(
        name=name,
        input=overrides.pop("input", f"src/{name}.js"),
        output=overrides.pop("output", [f"dist/{name}.js"]),
        command=overrides.pop("command", "true"),
        cwd=cwd or Path.cwd(),
        watch=watch,
        **overrides,
    )


@pytest.fixture
def bundle_factory():
    return make_bundle


# ============================================================================
# Test Doubles
# ============================================================================


class FakeSession:
    """Stands in for a build-watch session; records lifecycle calls."""

    def __init__(self, configs: List[BundleConfig], on_warning: Optional[Callable] = None):
        self.configs = configs
        self.on_warning = on_warning
        self.emitter = EventEmitter()
        self.close_calls = 0

    def on(self, name: str, listener: Callable[..., Any]) -> Subscription:
        return self.emitter.on(name, listener)

    def emit(self, event: Any) -> None:
        self.emitter.emit("event", event)

    def close(self) -> None:
        self.close_calls += 1


class FakeStartWatch:
    """`start_watch` replacement recording every session it creates."""

    def __init__(self, log: Optional[List[str]] = None):
        self.sessions: List[FakeSession] = []
        self.log = log if log is not None else []

    def __call__(self, configs: List[BundleConfig], on_warning: Optional[Callable] = None) -> FakeSession:
        session = FakeSession(configs, on_warning=on_warning)
        original_close = session.close

        def close() -> None:
            self.log.append(f"close:{configs[0].name}")
            original_close()

        session.close = close
        self.log.append(f"start:{configs[0].name}")
        self.sessions.append(session)
        return session


class GatedLoader:
    """
    `load_config` replacement that blocks every call until released.

    Each call records the file content it saw and returns one bundle named
    after that content, so tests can tell which version got installed.
    """

    def __init__(self, fail_on: Optional[Dict[str, Exception]] = None):
        self.calls: List[str] = []
        self.fail_on = fail_on or {}
        self._gates: List[asyncio.Event] = []
        self.started = asyncio.Event()

    @property
    def pending(self) -> int:
        return sum(1 for gate in self._gates if not gate.is_set())

    def release(self) -> None:
        for gate in self._gates:
            if not gate.is_set():
                gate.set()
                return

    async def __call__(self, config_path: Path, options: Any):
        from buildwatch.models import LoadedConfig

        source = Path(config_path).read_text()
        content = source.strip()
        self.calls.append(content)
        gate = asyncio.Event()
        self._gates.append(gate)
        self.started.set()
        await gate.wait()
        if content in self.fail_on:
            raise self.fail_on[content]
        return LoadedConfig(configs=[make_bundle(name=content)], warnings=[f"loaded {content}"], source=source)


@pytest.fixture
def fake_start_watch():
    return FakeStartWatch()


async def settle(iterations: int = 5) -> None:
    """Let pending callbacks and tasks run."""
    for _ in range(iterations):
        await asyncio.sleep(0)
