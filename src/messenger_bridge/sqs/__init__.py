"""Amazon SQS transport adapter."""

from __future__ import annotations

from .client import SqsClientManager
from .config import ConnectionConfig, resolve
from .connection import MESSAGE_ATTRIBUTE_NAME, Connection, RawMessage, SetupState
from .factory import AmazonSqsTransportFactory
from .receiver import AmazonSqsReceiver
from .sender import AmazonSqsSender
from .stamps import AmazonSqsFifoStamp, AmazonSqsReceivedStamp
from .transport import AmazonSqsTransport

__all__ = [
    "MESSAGE_ATTRIBUTE_NAME",
    "AmazonSqsFifoStamp",
    "AmazonSqsReceivedStamp",
    "AmazonSqsReceiver",
    "AmazonSqsSender",
    "AmazonSqsTransport",
    "AmazonSqsTransportFactory",
    "Connection",
    "ConnectionConfig",
    "RawMessage",
    "SetupState",
    "SqsClientManager",
    "resolve",
]
