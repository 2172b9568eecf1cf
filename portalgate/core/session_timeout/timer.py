from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from portalgate.core.logger import get_logger


class RecurringTimer:
    """
    Calls ``fn`` every ``interval`` seconds on a daemon thread until cancelled.

    A cancelled timer cannot be restarted; create a new one instead.
    """

    def __init__(self, interval: float, fn: Callable[[], None], *, name: str = "session-timeout", logger: Optional[logging.Logger] = None):
        self.interval = float(interval)
        self.fn = fn
        self.logger = logger or get_logger("session")
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        # never joins: cancel may run on the timer thread itself or under the monitor lock
        self._stop.set()

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.fn()
            except Exception as e:  # noqa: BLE001
                self.logger.error("Session timer tick failed: %s", e)
