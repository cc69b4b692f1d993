"""
Configuration for the notification listener.

The broker settings are read once at startup from a JSON file:

    {
        "mqtt_server": "broker.example.com",
        "mqtt_port": 1883,
        "mqtt_username": "listener",      (optional)
        "mqtt_password": "secret",        (optional)
        "mqtt_topic": "notify",
        "cleaning_cycle": 43200,
        "mqtt_client_id": "notify-listener",  (optional)
        "mqtt_use_tls": false,                (optional)
        "images_dir": "images"                (optional)
    }

The file location is taken from the --config flag, then the
NOTIFY_LISTENER_CONFIG environment variable, then config/config.json.
"""
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ConfigError

CONFIG_PATH_ENV = 'NOTIFY_LISTENER_CONFIG'
DEFAULT_CONFIG_PATH = os.path.join('config', 'config.json')

# Session policy. These are fixed, only cleaning_cycle is configurable.
KEEPALIVE_SECONDS = 5
INACTIVITY_TIMEOUT_SECONDS = 300
RECONNECT_DELAY_SECONDS = 5
POLL_TICK_SECONDS = 1.0

# Notification defaults
DEFAULT_TITLE = 'Notification'
DEFAULT_BODY = 'Details'
DEFAULT_LOGO = 'default_toast_logo.png'
DEFAULT_IMAGES_DIR = 'images'
DEFAULT_CLIENT_ID = 'notify-listener'

APP_NAME = 'Notify Listener'
TRAY_ICON_FILE = 'tray_icon.png'


@dataclass(frozen=True)
class BrokerConfig:
    """Broker and listener settings, immutable for the process lifetime."""

    mqtt_server: str
    mqtt_port: int
    mqtt_topic: str
    cleaning_cycle: int
    mqtt_username: Optional[str] = None
    mqtt_password: Optional[str] = None
    mqtt_client_id: str = DEFAULT_CLIENT_ID
    mqtt_use_tls: bool = False
    images_dir: str = DEFAULT_IMAGES_DIR

    @property
    def has_credentials(self) -> bool:
        """Credentials are applied only when both username and password are set."""
        return bool(self.mqtt_username) and bool(self.mqtt_password)


def _require(data: Dict[str, Any], key: str, kind: type, path: str) -> Any:
    if key not in data:
        raise ConfigError(f"Missing required key '{key}' in {path}")
    value = data[key]
    # bool is an int subclass, never accept it for numeric keys
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ConfigError(f"Key '{key}' in {path} must be of type {kind.__name__}")
    return value


def _optional(data: Dict[str, Any], key: str, kind: type, path: str, default: Any = None) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ConfigError(f"Key '{key}' in {path} must be of type {kind.__name__}")
    return value


def parse_config(data: Any, path: str = '<memory>') -> BrokerConfig:
    """
    Validate a decoded JSON document and build a BrokerConfig.

    Args:
        data: Decoded JSON value
        path: Source path, used in error messages

    Returns:
        BrokerConfig

    Raises:
        ConfigError: If a required key is missing or a value has the wrong type
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a JSON object")

    port = _require(data, 'mqtt_port', int, path)
    if not 0 < port < 65536:
        raise ConfigError(f"Key 'mqtt_port' in {path} is out of range: {port}")

    cleaning_cycle = _require(data, 'cleaning_cycle', int, path)
    if cleaning_cycle <= 0:
        raise ConfigError(f"Key 'cleaning_cycle' in {path} must be positive: {cleaning_cycle}")

    return BrokerConfig(
        mqtt_server=_require(data, 'mqtt_server', str, path),
        mqtt_port=port,
        mqtt_topic=_require(data, 'mqtt_topic', str, path),
        cleaning_cycle=cleaning_cycle,
        mqtt_username=_optional(data, 'mqtt_username', str, path),
        mqtt_password=_optional(data, 'mqtt_password', str, path),
        mqtt_client_id=_optional(data, 'mqtt_client_id', str, path, DEFAULT_CLIENT_ID),
        mqtt_use_tls=_optional(data, 'mqtt_use_tls', bool, path, False),
        images_dir=_optional(data, 'images_dir', str, path, DEFAULT_IMAGES_DIR),
    )


def resolve_config_path(path: Optional[str] = None) -> str:
    """Return the explicit path, else the environment override, else the default."""
    return path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH


def load_config(path: Optional[str] = None) -> BrokerConfig:
    """
    Load the broker configuration file.

    Args:
        path: Optional explicit path to the JSON file

    Returns:
        BrokerConfig

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    config_path = resolve_config_path(path)
    try:
        with open(config_path, encoding='utf-8') as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {config_path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {config_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc

    return parse_config(data, config_path)
