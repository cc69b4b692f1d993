"""
Payload Parser - Turns MQTT message payloads into notification events.

Expected payload (UTF-8 JSON object):
    {"title": "...", "body_message": "...", "message_id": "...", "logo": "..."}

Only message_id is required. Unknown fields are ignored.

Usage:
    from .payload_parser import decode_notification

    event = decode_notification(b'{"message_id": "abc"}')
    # NotificationEvent(title='Notification', body_message='Details',
    #                   message_id='abc', logo=None)
"""
import json
from typing import Any, Dict, Optional

from .config import DEFAULT_BODY, DEFAULT_TITLE
from .errors import PayloadDecodeError
from .models import NotificationEvent

# Optional fields and the value used when they are missing or null
OPTIONAL_FIELDS = {
    'title': DEFAULT_TITLE,
    'body_message': DEFAULT_BODY,
    'logo': None,
}


def _load_object(raw_payload: bytes) -> Dict[str, Any]:
    """Decode bytes to a JSON object or raise PayloadDecodeError."""
    try:
        text = raw_payload.decode('utf-8')
    except UnicodeDecodeError as exc:
        raise PayloadDecodeError(f"Payload is not valid UTF-8: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PayloadDecodeError(f"Payload is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise PayloadDecodeError(f"Payload must be a JSON object, got {type(data).__name__}")
    return data


def _optional_string(data: Dict[str, Any], field: str, default: Optional[str]) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return default
    if not isinstance(value, str):
        raise PayloadDecodeError(f"Field '{field}' must be a string, got {type(value).__name__}")
    return value


def decode_notification(raw_payload: bytes) -> NotificationEvent:
    """
    Parse a raw MQTT payload into a NotificationEvent.

    Args:
        raw_payload: Message payload bytes as received from the broker

    Returns:
        NotificationEvent with defaults applied

    Raises:
        PayloadDecodeError: If the payload is not UTF-8 JSON, not an object,
            lacks a string message_id, or has a non-string optional field

    Examples:
        >>> decode_notification(b'{"message_id": "1", "title": "Hi"}').body_message
        'Details'
    """
    data = _load_object(raw_payload)

    message_id = data.get('message_id')
    if message_id is None:
        raise PayloadDecodeError("Payload is missing required field 'message_id'")
    if not isinstance(message_id, str):
        raise PayloadDecodeError(
            f"Field 'message_id' must be a string, got {type(message_id).__name__}"
        )

    fields = {name: _optional_string(data, name, default) for name, default in OPTIONAL_FIELDS.items()}
    return NotificationEvent(message_id=message_id, **fields)
