"""Online/offline connectivity monitor.

Connectivity here is a heuristic from the host network state, not a
reachability probe: ``current() is True`` means a sync may be attempted.
"""

from __future__ import annotations

import socket
import threading
from types import TracebackType
from typing import Callable

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

ConnectivityCallback = Callable[[bool], None]
ConnectivityProbe = Callable[[], bool]


def default_route_probe(host: str, port: int) -> ConnectivityProbe:
    """Build a probe that checks whether the host has a route to ``host``.

    Connecting a UDP socket only selects a route; no packet is sent.
    """

    def probe() -> bool:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as udp_socket:
                udp_socket.connect((host, port))
        except OSError:
            return False
        return True

    return probe


class Subscription:
    """Handle for one registered connectivity callback.

    Release it with ``unsubscribe()`` or by using it as a context manager.
    """

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        """Remove the callback; later calls are no-ops."""
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.unsubscribe()


class ConnectivityMonitor:
    """Observable connectivity flag fed by host notifications or polling."""

    def __init__(self, probe: ConnectivityProbe | None = None, initial: bool | None = None) -> None:
        """Create a monitor.

        Args:
            probe: Callable returning the host connectivity guess.
            initial: Starting value; probed when omitted.
        """
        self._probe = probe
        self._lock = threading.Lock()
        self._callbacks: dict[int, ConnectivityCallback] = {}
        self._next_token = 0
        if initial is None:
            initial = probe() if probe is not None else True
        self._online = initial

    def current(self) -> bool:
        """Return the instantaneous connectivity guess."""
        return self._online

    def subscribe(self, callback: ConnectivityCallback) -> Subscription:
        """Register ``callback`` for online/offline transitions."""
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._callbacks[token] = callback
        return Subscription(lambda: self._remove(token))

    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def set_online(self, online: bool) -> None:
        """Record a host connectivity notification, notifying on change."""
        with self._lock:
            if online == self._online:
                return
            self._online = online
            callbacks = list(self._callbacks.values())
        _LOGGER.info("connectivity_changed", online=online)
        for callback in callbacks:
            callback(online)

    def poll(self) -> bool:
        """Re-run the probe and publish any transition.

        Returns:
            The refreshed connectivity guess.
        """
        if self._probe is not None:
            self.set_online(self._probe())
        return self._online

    def _remove(self, token: int) -> None:
        with self._lock:
            self._callbacks.pop(token, None)
