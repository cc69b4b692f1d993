"""
Subscriber Service - The outer reconnect loop.

Every session ends in ReconnectPending. The service waits a fixed
RECONNECT_DELAY_SECONDS and starts the next session. There is no retry
ceiling and no backoff growth; the loop only ends with the process.
"""
import logging
import threading
import time
from typing import Callable, Optional

from .config import BrokerConfig, RECONNECT_DELAY_SECONDS
from .dedup import DedupStore
from .mqtt_handler import ConnectionManager, NotificationSink
from .watchdog import ActivityWatchdog

logger = logging.getLogger(__name__)


class SubscriberService:
    """Keeps a ConnectionManager session alive forever."""

    RECONNECT_DELAY = RECONNECT_DELAY_SECONDS

    def __init__(self, manager: ConnectionManager, sleep: Callable[[float], None] = time.sleep) -> None:
        self._manager = manager
        self._sleep = sleep
        self.attempts = 0

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    def run(self) -> None:
        """Run sessions back to back, waiting RECONNECT_DELAY between them."""
        while True:
            self.attempts += 1
            reason = self._manager.run_session()
            logger.info("Reconnecting in %s seconds (attempt %d ended: %s)...",
                        self.RECONNECT_DELAY, self.attempts, reason.value)
            self._sleep(self.RECONNECT_DELAY)

    def start(self) -> threading.Thread:
        """Run the service on a daemon thread and return the thread."""
        thread = threading.Thread(target=self.run, name='mqtt-subscriber', daemon=True)
        thread.start()
        return thread


def build_service(config: BrokerConfig, sink: NotificationSink,
                  dedup: Optional[DedupStore] = None) -> SubscriberService:
    """
    Wire the subscription core together and start the dedup reset cycle.

    Args:
        config: Loaded broker configuration
        sink: Callable receiving each new NotificationEvent
        dedup: Optional existing store, a new one is created otherwise

    Returns:
        SubscriberService ready to start()
    """
    dedup = dedup if dedup is not None else DedupStore()
    dedup.start_reset_cycle(config.cleaning_cycle)
    manager = ConnectionManager(config, dedup, sink, watchdog=ActivityWatchdog())
    return SubscriberService(manager)
