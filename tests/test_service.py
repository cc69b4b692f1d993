"""Tests for the outer reconnect loop."""
import threading
from unittest.mock import MagicMock

import pytest

from notify_listener.config import RECONNECT_DELAY_SECONDS
from notify_listener.dedup import DedupStore
from notify_listener.errors import BrokerConnectError, SubscribeError
from notify_listener.models import ConnectionState
from notify_listener.mqtt_handler import ConnectionManager
from notify_listener.service import SubscriberService, build_service
from notify_listener.watchdog import ActivityWatchdog


class StopLoop(Exception):
    pass


class RecordingSleep:
    """Records requested delays and ends the loop after `limit` sleeps."""

    def __init__(self, limit, clock=None):
        self.limit = limit
        self.clock = clock
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)
        if len(self.delays) >= self.limit:
            raise StopLoop()


def test_subscribe_fails_twice_then_succeeds(config, clock, make_session, make_factory):
    reached = []
    manager = None

    def observe():
        reached.append(manager.state)
        return []

    factory = make_factory(
        make_session(subscribe_error=SubscribeError('rejected')),
        make_session(subscribe_error=SubscribeError('rejected')),
        make_session(polls=[observe]),
    )
    manager = ConnectionManager(config, DedupStore(), MagicMock(),
                                watchdog=ActivityWatchdog(clock), session_factory=factory)
    sleep = RecordingSleep(limit=3)
    service = SubscriberService(manager, sleep=sleep)

    with pytest.raises(StopLoop):
        service.run()

    assert sleep.delays == [5, 5, 5]
    assert service.attempts == 3
    assert [s.subscribed_topic for s in factory.created] == [None, None, 'notify']
    assert reached == [ConnectionState.SUBSCRIBED]


def test_reconnect_delay_is_fixed_and_uncapped(config, clock, make_session, make_factory):
    sessions = [make_session(connect_error=BrokerConnectError('down')) for _ in range(12)]
    manager = ConnectionManager(config, DedupStore(), MagicMock(),
                                watchdog=ActivityWatchdog(clock),
                                session_factory=make_factory(*sessions))
    sleep = RecordingSleep(limit=12)

    with pytest.raises(StopLoop):
        SubscriberService(manager, sleep=sleep).run()

    assert sleep.delays == [RECONNECT_DELAY_SECONDS] * 12
    assert all(session.closed for session in sessions)


def test_stale_session_is_replaced_within_one_backoff(config, clock, make_session, make_factory):
    def silence():
        clock.advance(301)
        return []

    first = make_session(polls=[silence])
    second = make_session(polls=[])
    connect_times = []
    second.connect = lambda: connect_times.append(clock())
    factory = make_factory(first, second)
    manager = ConnectionManager(config, DedupStore(), MagicMock(),
                                watchdog=ActivityWatchdog(clock), session_factory=factory)
    stale_detected_at = clock() + 301
    sleep = RecordingSleep(limit=2, clock=clock)

    with pytest.raises(StopLoop):
        SubscriberService(manager, sleep=sleep).run()

    assert first.closed
    assert factory.created == [first, second]
    assert connect_times[0] - stale_detected_at == RECONNECT_DELAY_SECONDS


def test_unexpected_session_error_still_retries(config, clock, make_session, make_factory):
    first = make_session(polls=[RuntimeError('malformed packet')])
    second = make_session(polls=[])
    factory = make_factory(first, second)
    manager = ConnectionManager(config, DedupStore(), MagicMock(),
                                watchdog=ActivityWatchdog(clock), session_factory=factory)
    sleep = RecordingSleep(limit=2)

    with pytest.raises(StopLoop):
        SubscriberService(manager, sleep=sleep).run()

    assert factory.created == [first, second]
    assert second.connected
    assert sleep.delays == [RECONNECT_DELAY_SECONDS] * 2


def test_start_runs_on_daemon_thread(monkeypatch):
    ran = threading.Event()
    monkeypatch.setattr(SubscriberService, 'run', lambda self: ran.set())
    service = SubscriberService(MagicMock())

    thread = service.start()
    thread.join(timeout=1)

    assert ran.is_set()
    assert thread.daemon is True
    assert thread.name == 'mqtt-subscriber'


def test_build_service_wires_core_and_starts_reset_cycle(config):
    dedup = MagicMock(spec=DedupStore)
    sink = MagicMock()

    service = build_service(config, sink, dedup=dedup)

    dedup.start_reset_cycle.assert_called_once_with(60)
    assert isinstance(service.manager, ConnectionManager)
    assert service.manager.state is ConnectionState.DISCONNECTED
