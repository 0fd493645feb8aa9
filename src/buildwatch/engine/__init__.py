"""
Command-based build engine.

Exposes `start_watch(configs) -> CommandWatchSession`, the build-watch
collaborator driven by the orchestration layer.
"""

from .emitter import EventEmitter, Subscription
from .process_manager import terminate_process_tree
from .session import CommandWatchSession, start_watch

__all__ = [
    "CommandWatchSession",
    "EventEmitter",
    "Subscription",
    "start_watch",
    "terminate_process_tree",
]
