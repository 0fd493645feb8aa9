"""
Lifecycle of the active build-watch session.

At most one session is live at any time: the previous session is closed
before its replacement is requested, and the replacement is wired to the
event relay only after that.
"""

import logging
from typing import Any, Callable, List, Optional, Protocol

from ..engine.emitter import Subscription
from ..models.config import BundleConfig
from .event_relay import BuildEventRelay

logger = logging.getLogger(__name__)


class WatchSession(Protocol):
    """What the manager needs from a build-watch session."""

    def on(self, name: str, listener: Callable[..., Any]) -> Subscription: ...

    def close(self) -> None: ...


StartWatchFunc = Callable[..., WatchSession]


class WatchSessionManager:
    """
    Owns the single active watch session.

    Args:
        start_watch: Creates and starts a session for a list of bundles;
            called as `start_watch(configs, on_warning=...)`
        relay: Event relay the active session is wired to
    """

    def __init__(self, start_watch: StartWatchFunc, relay: BuildEventRelay):
        self._start_watch = start_watch
        self._relay = relay
        self._active: Optional[WatchSession] = None
        self._subscription: Optional[Subscription] = None
        self.sessions_started = 0
        self._shut_down = False

    @property
    def active(self) -> Optional[WatchSession]:
        return self._active

    def replace(self, configs: List[BundleConfig]) -> None:
        """Close the active session, if any, and start one for `configs`."""
        if self._shut_down:
            logger.info("Ignoring session replacement requested after shutdown")
            return
        self.close_active()

        session = self._start_watch(configs, on_warning=self._relay.add_warning)
        self._subscription = self._relay.subscribe(session, configs)
        self._active = session
        self.sessions_started += 1
        logger.info(f"Started watch session #{self.sessions_started} for {[c.name for c in configs]}")

    def close_active(self) -> None:
        """Close the active session. No-op when none is active."""
        session, self._active = self._active, None
        if session is None:
            return
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        session.close()
        logger.debug("Closed active watch session")

    def shutdown(self) -> None:
        """Close the active session and refuse any further replacement."""
        self._shut_down = True
        self.close_active()
