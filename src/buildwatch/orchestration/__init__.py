"""
Orchestration of a watch run.

Components:
- WatchRunner: Top-level wiring of a watch run
- ConfigChangeDetector: Change notifications for the configuration file
- ReloadCoordinator: Coalesces changes into reload cycles
- WatchSessionManager: Owns the single active build-watch session
- BuildEventRelay: Projects build events onto status output
- ShutdownCoordinator: Termination triggers and run-once cleanup
- SignalHandler: SIGINT / SIGTERM routing
"""

from .config_watcher import ConfigChangeDetector
from .event_relay import BuildEventRelay
from .reload_coordinator import ReloadCoordinator, ReloadState
from .session_manager import WatchSession, WatchSessionManager
from .shared_state import TimeoutConstants, WatchRunnerConfig
from .shutdown import ShutdownCoordinator
from .signal_handler import SignalHandler
from .watch_runner import WATCH_ENV_VAR, WatchRunner

__all__ = [
    "BuildEventRelay",
    "ConfigChangeDetector",
    "ReloadCoordinator",
    "ReloadState",
    "ShutdownCoordinator",
    "SignalHandler",
    "TimeoutConstants",
    "WATCH_ENV_VAR",
    "WatchRunner",
    "WatchRunnerConfig",
    "WatchSession",
    "WatchSessionManager",
]
