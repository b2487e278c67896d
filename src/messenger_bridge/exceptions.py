"""Exceptions for messenger-bridge."""

from __future__ import annotations


class MessengerError(Exception):
    """Root exception for the entire messenger-bridge package."""


class InvalidConfigurationError(MessengerError):
    """Raised when a DSN is malformed or carries an unrecognized option.

    Always raised before any network call is made.
    """


class ConfigurationError(MessengerError):
    """Raised when the target queue is missing and cannot be created."""


class ProvisioningError(MessengerError):
    """Raised when a created queue could not be confirmed to exist."""


class TransportError(MessengerError):
    """Wraps any fault of the underlying transport (network, service errors).

    The original exception is available as ``__cause__``.
    """


class UnsupportedSchemeError(MessengerError):
    """Raised when no registered transport factory claims a DSN."""

    def __init__(self, dsn: str, hint: str | None = None) -> None:
        self.dsn = dsn
        self.hint = hint
        msg = f'No transport supports the given Messenger DSN "{dsn}".'
        if hint:
            msg += f" {hint}"
        super().__init__(msg)


class MessagingSerializationError(MessengerError):
    """Raised when message serialization or deserialization fails."""


class MessageDecodingFailedError(MessagingSerializationError):
    """Raised when a received message cannot be decoded into an envelope.

    ``message_id`` is the receipt handle when the transport already knows
    which queued message is at fault.
    """

    def __init__(self, message: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        super().__init__(message)
