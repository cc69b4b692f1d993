"""
Dedup Store - Remembers which message ids were already shown.

The store is shared between the MQTT poll loop (check_and_mark) and a
background reset thread (clear). Both go through one lock, so a check and its
insert are never split by a clear.

There is no size limit. The reset cycle is the only eviction: with a very
large cleaning_cycle and a busy topic the set grows without bound until the
next reset.
"""
import logging
import threading
from typing import Optional, Set

logger = logging.getLogger(__name__)


class DedupStore:
    """Set of previously forwarded message ids, cleared on a fixed cycle."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    def check_and_mark(self, message_id: str) -> bool:
        """
        Record a message id.

        Args:
            message_id: Unique id from the notification payload

        Returns:
            True if the id was already present (duplicate, drop it),
            False if it was inserted now (new, forward it)
        """
        with self._lock:
            if message_id in self._seen:
                return True
            self._seen.add(message_id)
            return False

    def clear(self) -> int:
        """Remove every id. Returns how many were removed."""
        with self._lock:
            count = len(self._seen)
            self._seen.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __contains__(self, message_id: object) -> bool:
        with self._lock:
            return message_id in self._seen

    def reset_loop(self, interval: float, stop_event: Optional[threading.Event] = None) -> None:
        """
        Clear the store every `interval` seconds.

        Runs for the process lifetime regardless of the broker connection.
        `stop_event` exists for tests; the listener never sets it.
        """
        stop_event = stop_event or threading.Event()
        while not stop_event.wait(timeout=interval):
            cleared = self.clear()
            logger.info("Seen messages set cleared after %s seconds (%d ids removed).", interval, cleared)

    def start_reset_cycle(self, interval: float,
                          stop_event: Optional[threading.Event] = None) -> threading.Thread:
        """Run reset_loop on a daemon thread and return the thread."""
        thread = threading.Thread(
            target=self.reset_loop,
            args=(interval, stop_event),
            name='dedup-reset',
            daemon=True,
        )
        thread.start()
        logger.debug("Dedup reset cycle started (every %s seconds)", interval)
        return thread
