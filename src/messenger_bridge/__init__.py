"""DSN-driven message transports: Amazon SQS and in-memory."""

from __future__ import annotations

from .envelope import Envelope
from .exceptions import (
    ConfigurationError,
    InvalidConfigurationError,
    MessageDecodingFailedError,
    MessagingSerializationError,
    MessengerError,
    ProvisioningError,
    TransportError,
    UnsupportedSchemeError,
)
from .ports import Transport, TransportFactoryInterface
from .registry import MessageTypeRegistry
from .serialization import EncodedMessage, JsonSerializer, Serializer
from .stamps import DelayStamp, NonSendableStamp, Stamp, TransportMessageIdStamp
from .transport_factory import TransportFactory, default_transport_factory

__all__ = [
    "ConfigurationError",
    "DelayStamp",
    "EncodedMessage",
    "Envelope",
    "InvalidConfigurationError",
    "JsonSerializer",
    "MessageDecodingFailedError",
    "MessageTypeRegistry",
    "MessagingSerializationError",
    "MessengerError",
    "NonSendableStamp",
    "ProvisioningError",
    "Serializer",
    "Stamp",
    "Transport",
    "TransportError",
    "TransportFactory",
    "TransportFactoryInterface",
    "TransportMessageIdStamp",
    "UnsupportedSchemeError",
    "default_transport_factory",
]
