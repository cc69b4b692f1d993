"""
MQTT Handler - Owns one broker session and turns publishes into notifications.

A session goes Disconnected -> Connecting -> Subscribed and always ends in
ReconnectPending with a reason. The outer retry loop lives in
service.SubscriberService.

Inside a session the poll loop:
    1. checks the inactivity watchdog before every poll,
    2. polls the paho network loop with a short tick,
    3. records activity for every received packet,
    4. decodes publishes, drops duplicates and forwards the rest to the sink.
"""
import logging
import re
import ssl
from typing import Callable, List, Optional

import paho.mqtt.client as mqtt

from .config import (
    BrokerConfig,
    INACTIVITY_TIMEOUT_SECONDS,
    KEEPALIVE_SECONDS,
    POLL_TICK_SECONDS,
)
from .dedup import DedupStore
from .errors import (
    BrokerConnectError,
    BrokerError,
    PayloadDecodeError,
    SubscribeError,
    TransportError,
)
from .models import (
    BrokerEvent,
    ConnectionState,
    EventKind,
    NotificationEvent,
    ReconnectReason,
)
from .payload_parser import decode_notification
from .watchdog import ActivityWatchdog

logger = logging.getLogger(__name__)

# paho reports every inbound packet through its log callback as "Received <TYPE> ..."
_RECEIVED_PACKET = re.compile(r'^Received (\w+)')

NotificationSink = Callable[[NotificationEvent], None]


class BrokerSession:
    """
    One paho-mqtt client exposed as connect / subscribe / poll.

    Callbacks fire inside client.loop(), on the polling thread, and queue
    BrokerEvents that poll() hands back.
    """

    def __init__(self, config: BrokerConfig) -> None:
        self._config = config
        self._pending: List[BrokerEvent] = []
        self._failure: Optional[BrokerError] = None
        self._deferred: Optional[TransportError] = None
        self._client = self._create_client()

    def _create_client(self) -> mqtt.Client:
        """Create and configure the MQTT client."""
        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self._config.mqtt_client_id,
        )

        client.on_connect = self._on_connect
        client.on_subscribe = self._on_subscribe
        client.on_message = self._on_message
        client.on_disconnect = self._on_disconnect
        client.on_log = self._on_log

        if self._config.has_credentials:
            client.username_pw_set(self._config.mqtt_username, self._config.mqtt_password)

        if self._config.mqtt_use_tls:
            client.tls_set(cert_reqs=ssl.CERT_REQUIRED, tls_version=ssl.PROTOCOL_TLS_CLIENT)
            logger.info("TLS enabled for secure connection")

        return client

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            self._failure = BrokerConnectError(f"Broker refused connection: {reason_code}")

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties):
        failed = [str(rc) for rc in reason_code_list if rc.is_failure]
        if failed:
            self._failure = SubscribeError(f"Broker rejected subscription: {', '.join(failed)}")

    def _on_message(self, client, userdata, msg):
        self._pending.append(BrokerEvent(EventKind.PUBLISH, 'PUBLISH', msg.topic, bytes(msg.payload)))

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        self._pending.append(BrokerEvent(EventKind.END_OF_STREAM, f'DISCONNECT ({reason_code})'))

    def _on_log(self, client, userdata, level, buf):
        match = _RECEIVED_PACKET.match(buf)
        # PUBLISH already arrives through on_message
        if match and match.group(1) != 'PUBLISH':
            self._pending.append(BrokerEvent(EventKind.PROTOCOL, match.group(1)))

    def connect(self) -> None:
        try:
            self._client.connect(
                self._config.mqtt_server,
                self._config.mqtt_port,
                keepalive=KEEPALIVE_SECONDS,
            )
        except (OSError, ValueError) as exc:
            raise BrokerConnectError(
                f"Could not connect to {self._config.mqtt_server}:{self._config.mqtt_port}: {exc}"
            ) from exc

    def subscribe(self, topic: str) -> None:
        result, _mid = self._client.subscribe(topic, qos=0)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise SubscribeError(f"Subscribe to '{topic}' failed: {mqtt.error_string(result)}")

    def poll(self, timeout: float) -> List[BrokerEvent]:
        """
        Run the network loop once and return the events it produced.

        Raises:
            BrokerConnectError: CONNACK refused
            SubscribeError: SUBACK carried a failure code
            TransportError: the network loop failed
        """
        if self._deferred is not None:
            raise self._deferred

        rc = self._client.loop(timeout=timeout)
        events, self._pending = self._pending, []

        if self._failure is not None:
            raise self._failure

        if rc != mqtt.MQTT_ERR_SUCCESS:
            error = TransportError(f"Network loop failed: {mqtt.error_string(rc)}")
            if not events:
                raise error
            # Hand over what arrived first, fail on the next poll
            self._deferred = error
        return events

    def close(self) -> None:
        try:
            self._client.disconnect()
        except OSError as exc:
            logger.debug("Ignoring error while closing MQTT session: %s", exc)


SessionFactory = Callable[[BrokerConfig], BrokerSession]


class ConnectionManager:
    """Runs broker sessions and forwards new notifications to the sink."""

    INACTIVITY_TIMEOUT = INACTIVITY_TIMEOUT_SECONDS
    POLL_TICK = POLL_TICK_SECONDS

    def __init__(
        self,
        config: BrokerConfig,
        dedup: DedupStore,
        sink: NotificationSink,
        watchdog: Optional[ActivityWatchdog] = None,
        session_factory: SessionFactory = BrokerSession,
    ) -> None:
        self._config = config
        self._dedup = dedup
        self._sink = sink
        self._watchdog = watchdog or ActivityWatchdog()
        self._session_factory = session_factory
        self._state = ConnectionState.DISCONNECTED

    @property
    def state(self) -> ConnectionState:
        return self._state

    def _transition(self, new_state: ConnectionState, detail: str = '') -> None:
        old_state, self._state = self._state, new_state
        suffix = f" ({detail})" if detail else ''
        logger.info("Connection state: %s -> %s%s", old_state.value, new_state.value, suffix)

    def run_session(self) -> ReconnectReason:
        """
        Run one broker session until it has to be replaced.

        Returns:
            Why the session ended. The state is RECONNECT_PENDING afterwards.
        """
        self._transition(ConnectionState.CONNECTING)
        logger.info("Attempting to connect to the MQTT broker at %s:%s...",
                    self._config.mqtt_server, self._config.mqtt_port)

        session = None
        reason = ReconnectReason.TRANSPORT_ERROR
        try:
            session = self._session_factory(self._config)
            reason = self._run(session)
        except Exception:
            logger.exception("Unexpected error in MQTT session. Will attempt to reconnect.")
        finally:
            if session is not None:
                self._close(session)

        self._transition(ConnectionState.RECONNECT_PENDING, reason.value)
        return reason

    @staticmethod
    def _close(session: BrokerSession) -> None:
        try:
            session.close()
        except Exception:
            logger.exception("Failed to close MQTT session")

    def _run(self, session: BrokerSession) -> ReconnectReason:
        try:
            session.connect()
        except BrokerError as exc:
            logger.error("Failed to connect to the MQTT broker: %s", exc)
            return ReconnectReason.CONNECT_FAILED

        try:
            session.subscribe(self._config.mqtt_topic)
        except BrokerError as exc:
            logger.error("Failed to subscribe to topic '%s': %s. Retrying...", self._config.mqtt_topic, exc)
            return ReconnectReason.SUBSCRIBE_FAILED

        self._watchdog.record_activity()
        self._transition(ConnectionState.SUBSCRIBED, self._config.mqtt_topic)
        return self._poll_loop(session)

    def _poll_loop(self, session: BrokerSession) -> ReconnectReason:
        while True:
            if self._watchdog.is_stale(self.INACTIVITY_TIMEOUT):
                logger.warning("No events received in %s seconds. Forcing reconnection.",
                               self.INACTIVITY_TIMEOUT)
                return ReconnectReason.INACTIVITY

            try:
                events = session.poll(self.POLL_TICK)
            except BrokerError as exc:
                logger.warning("Error in event loop: %s. Will attempt to reconnect.", exc)
                return _reason_for(exc)

            for event in events:
                self._watchdog.record_activity()
                if event.kind is EventKind.END_OF_STREAM:
                    logger.warning("Broker connection closed: %s. Forcing reconnection.", event.packet)
                    return ReconnectReason.END_OF_STREAM
                if event.kind is EventKind.PUBLISH:
                    self.handle_payload(event.payload, event.topic)
                else:
                    logger.debug("Event: %s", event.packet)

    def handle_payload(self, payload: bytes, topic: Optional[str] = None) -> Optional[NotificationEvent]:
        """
        Decode one published payload and forward it unless it is a duplicate.

        Returns:
            The forwarded event, or None when the payload was dropped
        """
        try:
            event = decode_notification(payload)
        except PayloadDecodeError as exc:
            logger.warning("Failed to decode notification from topic %s: %s", topic, exc)
            return None

        if self._dedup.check_and_mark(event.message_id):
            logger.info("Duplicate message received, ignoring (message_id: %s).", event.message_id)
            return None

        logger.debug("Forwarding notification (message_id: %s)", event.message_id)
        try:
            self._sink(event)
        except Exception:
            logger.exception("Failed to show notification (message_id: %s)", event.message_id)
        return event


def _reason_for(exc: BrokerError) -> ReconnectReason:
    if isinstance(exc, BrokerConnectError):
        return ReconnectReason.CONNECT_FAILED
    if isinstance(exc, SubscribeError):
        return ReconnectReason.SUBSCRIBE_FAILED
    return ReconnectReason.TRANSPORT_ERROR
