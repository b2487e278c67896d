"""Unit tests for AmazonSqsTransport lifecycle and scoping."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from messenger_bridge.envelope import Envelope
from messenger_bridge.exceptions import MessageDecodingFailedError, TransportError
from messenger_bridge.ports import Transport
from messenger_bridge.serialization import JsonSerializer
from messenger_bridge.sqs.transport import AmazonSqsTransport

if TYPE_CHECKING:
    from collections.abc import Callable

    from messenger_bridge.sqs.connection import Connection


@pytest.fixture
def transport(
    make_connection: Callable[..., Connection], clients: MagicMock
) -> AmazonSqsTransport:
    return AmazonSqsTransport(
        make_connection(auto_setup=False), JsonSerializer(), clients
    )


def _receive(*receipts: str) -> dict[str, Any]:
    return {
        "Messages": [
            {
                "ReceiptHandle": receipt,
                "Body": '{"n": 1}',
                "MessageAttributes": {
                    "type": {"DataType": "String", "StringValue": "dict"}
                },
            }
            for receipt in receipts
        ]
    }


def test_protocol_compliance(transport: AmazonSqsTransport) -> None:
    assert isinstance(transport, Transport)


@pytest.mark.asyncio
async def test_send_then_get_then_ack(
    transport: AmazonSqsTransport, sqs_client: MagicMock
) -> None:
    await transport.send(Envelope.wrap({"n": 1}))
    sqs_client.send_message.assert_awaited_once()
    sqs_client.receive_message = AsyncMock(return_value=_receive("r-1"))
    [envelope] = await transport.get()
    assert envelope.message == {"n": 1}
    await transport.ack(envelope)
    assert sqs_client.delete_message.call_args.kwargs["ReceiptHandle"] == "r-1"


@pytest.mark.asyncio
async def test_scope_releases_and_closes(
    transport: AmazonSqsTransport, sqs_client: MagicMock, clients: MagicMock
) -> None:
    sqs_client.receive_message = AsyncMock(return_value=_receive("r-1", "r-2"))
    async with transport as t:
        await t.get()
    sqs_client.change_message_visibility.assert_awaited_once()
    assert (
        sqs_client.change_message_visibility.call_args.kwargs["ReceiptHandle"] == "r-2"
    )
    clients.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_scope_closes_on_error(
    transport: AmazonSqsTransport, sqs_client: MagicMock, clients: MagicMock
) -> None:
    sqs_client.receive_message = AsyncMock(return_value=_receive("r-1", "r-2"))
    with pytest.raises(RuntimeError, match="handler failed"):
        async with transport as t:
            await t.get()
            raise RuntimeError("handler failed")
    sqs_client.change_message_visibility.assert_awaited_once()
    clients.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_batch_with_malformed_headers(
    transport: AmazonSqsTransport, sqs_client: MagicMock, clients: MagicMock
) -> None:
    batch = _receive("r-1", "r-2", "r-3")
    batch["Messages"][1]["MessageAttributes"]["X-Messenger-Headers"] = {
        "DataType": "String",
        "StringValue": "not json",
    }
    sqs_client.receive_message = AsyncMock(return_value=batch)

    async with transport as t:
        [first] = await t.get()
        with pytest.raises(MessageDecodingFailedError):
            await t.get()
        assert first.message == {"n": 1}

    deleted = [
        c.kwargs["ReceiptHandle"] for c in sqs_client.delete_message.await_args_list
    ]
    released = [
        c.kwargs["ReceiptHandle"]
        for c in sqs_client.change_message_visibility.await_args_list
    ]
    assert deleted == ["r-2"]
    assert released == ["r-3"]
    clients.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_closes_client_even_if_reset_fails(
    transport: AmazonSqsTransport, sqs_client: MagicMock, clients: MagicMock
) -> None:
    sqs_client.receive_message = AsyncMock(return_value=_receive("r-1", "r-2"))
    sqs_client.change_message_visibility = AsyncMock(
        side_effect=ClientError({"Error": {"Code": "InternalError"}}, "Change")
    )
    await transport.get()
    with pytest.raises(TransportError):
        await transport.close()
    clients.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_setup_wraps_faults(
    transport: AmazonSqsTransport, sqs_client: MagicMock
) -> None:
    error = ClientError({"Error": {"Code": "AccessDenied"}}, "GetQueueUrl")
    sqs_client.get_queue_url = AsyncMock(side_effect=error)
    with pytest.raises(TransportError) as exc_info:
        await transport.setup()
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_get_message_count(transport: AmazonSqsTransport) -> None:
    assert await transport.get_message_count() == 3


@pytest.mark.asyncio
async def test_health_check_delegates(
    transport: AmazonSqsTransport, clients: MagicMock
) -> None:
    assert await transport.health_check() is True
    clients.health_check.assert_awaited_once()
