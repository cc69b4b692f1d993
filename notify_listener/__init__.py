"""
Notify Listener

Subscribes to an MQTT topic and shows each distinct notification as a
desktop toast:
- duplicate message ids are dropped until the next dedup reset
- a silent broker is detected and the session is rebuilt
- failed sessions are retried every 5 seconds, forever

Usage:
    python -m notify_listener
"""

from .config import BrokerConfig, load_config
from .dedup import DedupStore
from .errors import (
    BrokerConnectError,
    BrokerError,
    ConfigError,
    NotifyListenerError,
    PayloadDecodeError,
    SubscribeError,
    TransportError,
)
from .models import ConnectionState, NotificationEvent, ReconnectReason
from .mqtt_handler import BrokerSession, ConnectionManager
from .payload_parser import decode_notification
from .service import SubscriberService, build_service
from .watchdog import ActivityWatchdog

__version__ = '0.1.0'

__all__ = [
    'BrokerConfig',
    'load_config',
    'DedupStore',
    'BrokerConnectError',
    'BrokerError',
    'ConfigError',
    'NotifyListenerError',
    'PayloadDecodeError',
    'SubscribeError',
    'TransportError',
    'ConnectionState',
    'NotificationEvent',
    'ReconnectReason',
    'BrokerSession',
    'ConnectionManager',
    'decode_notification',
    'SubscriberService',
    'build_service',
    'ActivityWatchdog',
]
