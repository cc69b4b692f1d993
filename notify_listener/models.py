"""Value types shared by the subscription core."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class NotificationEvent:
    """A decoded notification with defaults already applied."""

    title: str
    body_message: str
    message_id: str
    logo: Optional[str] = None


class ConnectionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    SUBSCRIBED = 'subscribed'
    RECONNECT_PENDING = 'reconnect_pending'


class ReconnectReason(Enum):
    """Why a broker session ended."""

    CONNECT_FAILED = 'connect_failed'
    SUBSCRIBE_FAILED = 'subscribe_failed'
    TRANSPORT_ERROR = 'transport_error'
    END_OF_STREAM = 'end_of_stream'
    INACTIVITY = 'inactivity'


class EventKind(Enum):
    PUBLISH = 'publish'
    PROTOCOL = 'protocol'
    END_OF_STREAM = 'end_of_stream'


@dataclass(frozen=True)
class BrokerEvent:
    """One incoming event from the broker connection."""

    kind: EventKind
    packet: str
    topic: Optional[str] = None
    payload: bytes = b''
