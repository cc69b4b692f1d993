"""Exception hierarchy for the listener."""


class NotifyListenerError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(NotifyListenerError):
    """Configuration file missing or invalid. Fatal at startup."""


class PayloadDecodeError(NotifyListenerError, ValueError):
    """A published payload could not be turned into a notification."""


class BrokerError(NotifyListenerError):
    """A broker session failed and must be torn down."""


class BrokerConnectError(BrokerError):
    """TCP/TLS connect failed or the broker refused the connection."""


class SubscribeError(BrokerError):
    """The topic subscription was rejected."""


class TransportError(BrokerError):
    """The network loop reported an error on an open session."""
