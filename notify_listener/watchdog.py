"""
Inactivity watchdog for the broker session.

MQTT keep-alive catches a dead socket, but not a broker that keeps the
connection open and stops delivering anything. The poll loop records every
incoming event here and reconnects once nothing has arrived for
INACTIVITY_TIMEOUT_SECONDS.
"""
import time
from typing import Callable

from .config import INACTIVITY_TIMEOUT_SECONDS


class ActivityWatchdog:
    """Tracks the time since the last broker activity."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_activity = clock()

    def record_activity(self) -> None:
        self._last_activity = self._clock()

    def seconds_since_activity(self) -> float:
        return self._clock() - self._last_activity

    def is_stale(self, timeout: float = INACTIVITY_TIMEOUT_SECONDS) -> bool:
        """True once more than `timeout` seconds passed without activity."""
        return self.seconds_since_activity() > timeout
