"""Shared fixtures: config, a controllable clock and scripted broker sessions."""
import logging

import pytest

from notify_listener.config import BrokerConfig
from notify_listener.errors import TransportError
from notify_listener.logging_config import LOGGER_NAME


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSession:
    """
    Stand-in for BrokerSession driven by a script of poll results.

    Each script item is a list of events, an exception to raise, or a
    callable returning one of those. An exhausted script raises TransportError.
    """

    def __init__(self, connect_error=None, subscribe_error=None, polls=()):
        self.connect_error = connect_error
        self.subscribe_error = subscribe_error
        self.polls = list(polls)
        self.connected = False
        self.subscribed_topic = None
        self.poll_timeouts = []
        self.closed = False

    def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def subscribe(self, topic):
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.subscribed_topic = topic

    def poll(self, timeout):
        self.poll_timeouts.append(timeout)
        if not self.polls:
            raise TransportError("script exhausted")
        item = self.polls.pop(0)
        if callable(item):
            item = item()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class SessionFactory:
    """Hands out prepared FakeSessions in order."""

    def __init__(self, *sessions):
        self.sessions = list(sessions)
        self.created = []

    def __call__(self, config):
        session = self.sessions.pop(0)
        self.created.append(session)
        return session


@pytest.fixture
def config():
    return BrokerConfig(
        mqtt_server='broker.local',
        mqtt_port=1883,
        mqtt_topic='notify',
        cleaning_cycle=60,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def make_factory():
    return SessionFactory


@pytest.fixture(autouse=True)
def _reset_project_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, '_notify_listener', False):
            logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
