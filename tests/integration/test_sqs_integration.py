"""Integration tests for the SQS transport (require testcontainers and Docker)."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import pytest

pytest.importorskip("testcontainers")

from testcontainers.localstack import LocalStackContainer

from messenger_bridge import Envelope, JsonSerializer, default_transport_factory
from messenger_bridge.sqs import AmazonSqsFifoStamp

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(scope="module")
def localstack_dsn() -> Iterator[str]:
    with LocalStackContainer("localstack/localstack:3") as localstack:
        url = urlsplit(localstack.get_url())
        yield (
            f"sqs://test:test@{url.hostname}:{url.port}"
            "?sslmode=disable&region=us-east-1&wait_time=1&poll_timeout=2"
        )


@pytest.mark.asyncio
async def test_send_receive_ack(localstack_dsn: str) -> None:
    factory = default_transport_factory()
    dsn = localstack_dsn.replace("?", "/it-orders?", 1)
    async with factory.create_transport(dsn, {}, JsonSerializer()) as transport:
        await transport.send(Envelope.wrap({"order_id": "1"}))
        envelopes = []
        for _ in range(5):
            envelopes = await transport.get()
            if envelopes:
                break
        assert len(envelopes) == 1
        assert envelopes[0].message == {"order_id": "1"}
        await transport.ack(envelopes[0])


@pytest.mark.asyncio
async def test_fifo_queue_is_created(localstack_dsn: str) -> None:
    factory = default_transport_factory()
    dsn = localstack_dsn.replace("?", "/it-orders.fifo?", 1)
    async with factory.create_transport(dsn, {}, JsonSerializer()) as transport:
        await transport.send(
            Envelope.wrap(
                {"n": 1},
                AmazonSqsFifoStamp(
                    message_group_id="group", message_deduplication_id="dedup-1"
                ),
            )
        )
        envelopes = []
        for _ in range(5):
            envelopes = await transport.get()
            if envelopes:
                break
        assert [e.message for e in envelopes] == [{"n": 1}]
        await transport.ack(envelopes[0])


@pytest.mark.asyncio
async def test_health_check(localstack_dsn: str) -> None:
    factory = default_transport_factory()
    dsn = localstack_dsn.replace("?", "/it-health?", 1)
    async with factory.create_transport(dsn, {}, JsonSerializer()) as transport:
        assert await transport.health_check() is True
