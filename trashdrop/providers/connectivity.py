"""Network reachability signal (browser online/offline events on the web client)."""

import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    """
    Holds the current online flag and notifies listeners when it changes.

    With a `check` callable, `is_online()` calls it every time and records the
    answer; without one it reports the last value given to `set_online`.
    """

    def __init__(self, online: bool = True, check: Optional[Callable[[], bool]] = None):
        self._online = online
        self._check = check
        self._listeners: List[Listener] = []

    def is_online(self) -> bool:
        if self._check is not None:
            self.set_online(bool(self._check()))
        return self._online

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        for listener in list(self._listeners):
            listener(online)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
