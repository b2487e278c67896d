"""Pytest fixtures for messenger-bridge tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from messenger_bridge.sqs.config import resolve
from messenger_bridge.sqs.connection import Connection

if TYPE_CHECKING:
    from collections.abc import Callable

QUEUE_URL = "https://sqs.eu-west-1.amazonaws.com/123456789012/messages"


@pytest.fixture
def sqs_client() -> MagicMock:
    """A mocked aiobotocore SQS client whose queue exists."""
    client = MagicMock()
    client.get_queue_url = AsyncMock(return_value={"QueueUrl": QUEUE_URL})
    client.create_queue = AsyncMock(return_value={"QueueUrl": QUEUE_URL})
    client.send_message = AsyncMock(return_value={"MessageId": "m-1"})
    client.receive_message = AsyncMock(return_value={"Messages": []})
    client.delete_message = AsyncMock(return_value={})
    client.change_message_visibility = AsyncMock(return_value={})
    client.get_queue_attributes = AsyncMock(
        return_value={"Attributes": {"ApproximateNumberOfMessages": "3"}}
    )
    client.list_queues = AsyncMock(return_value={"QueueUrls": []})
    return client


@pytest.fixture
def clients(sqs_client: MagicMock) -> MagicMock:
    """A mocked SqsClientManager handing out ``sqs_client``."""
    manager = MagicMock()
    manager.get_client = AsyncMock(return_value=sqs_client)
    manager.close = AsyncMock()
    manager.health_check = AsyncMock(return_value=True)
    return manager


@pytest.fixture
def make_connection(clients: MagicMock) -> Callable[..., Connection]:
    """Build a Connection from a DSN and options, wired to the mocked client."""

    def _make(dsn: str = "sqs://localhost/messages", **options: Any) -> Connection:
        return Connection(
            resolve(dsn, options), clients, setup_attempts=2, setup_delay=0
        )

    return _make
