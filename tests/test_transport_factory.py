"""Tests for DSN dispatch: TransportFactory and the bundled factories."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from messenger_bridge.exceptions import (
    InvalidConfigurationError,
    UnsupportedSchemeError,
)
from messenger_bridge.memory import InMemoryTransport, InMemoryTransportFactory
from messenger_bridge.ports import TransportFactoryInterface
from messenger_bridge.serialization import JsonSerializer
from messenger_bridge.sqs import AmazonSqsTransport, AmazonSqsTransportFactory
from messenger_bridge.transport_factory import (
    TransportFactory,
    default_transport_factory,
    suggest_package,
)


@pytest.mark.parametrize(
    ("dsn", "expected"),
    [
        ("sns://localhost", True),
        ("https://sns.us-east-1.amazonaws.com/123456789012/messages", True),
        (
            "https://sns.us-east-2.amazonaws.com/123456789012/ab1-MyQueue-A2BCDEF3GHI4",
            True,
        ),
        ("https://sns.us-east-1.amazonaws.com/", False),
        ("https://sqs.us-east-1.amazonaws.com/123456789012/messages", False),
        ("sqs://localhost", False),
        ("redis://localhost", False),
        ("invalid-dsn", False),
    ],
)
def test_sns_factory_supports(dsn: str, expected: bool) -> None:
    assert AmazonSqsTransportFactory("sns").supports(dsn, {}) is expected


@pytest.mark.parametrize(
    ("dsn", "expected"),
    [
        ("sqs://localhost", True),
        ("sqs://default/orders", True),
        ("https://sqs.eu-west-1.amazonaws.com/123456789012/orders", True),
        ("https://sqs.eu-west-1.amazonaws.com.evil.com/1/orders", False),
        ("sns://localhost", False),
        ("amqp://localhost", False),
    ],
)
def test_sqs_factory_supports(dsn: str, expected: bool) -> None:
    assert AmazonSqsTransportFactory().supports(dsn, {}) is expected


def test_factories_satisfy_port() -> None:
    assert isinstance(AmazonSqsTransportFactory(), TransportFactoryInterface)
    assert isinstance(InMemoryTransportFactory(), TransportFactoryInterface)


def test_sqs_factory_creates_configured_transport() -> None:
    factory = AmazonSqsTransportFactory(session=MagicMock())
    transport = factory.create_transport(
        "sqs://localhost:4566/orders?sslmode=disable",
        {"transport_name": "async", "wait_time": 5},
        JsonSerializer(),
    )
    assert isinstance(transport, AmazonSqsTransport)
    config = transport.connection.config
    assert config.queue_name == "orders"
    assert config.wait_time == 5
    assert config.endpoint == "http://localhost:4566"


def test_sns_factory_resolves_against_sns_hostname() -> None:
    factory = AmazonSqsTransportFactory("sns", session=MagicMock())
    transport = factory.create_transport(
        "https://sns.us-east-1.amazonaws.com/123456789012/messages",
        {},
        JsonSerializer(),
    )
    config = transport.connection.config
    assert config.region == "us-east-1"
    assert config.account == "123456789012"
    assert config.queue_url == (
        "https://sns.us-east-1.amazonaws.com/123456789012/messages"
    )


def test_sqs_factory_rejects_unknown_option_before_any_io() -> None:
    session = MagicMock()
    factory = AmazonSqsTransportFactory(session=session)
    with pytest.raises(InvalidConfigurationError, match="Unknown option found"):
        factory.create_transport("sqs://default/orders", {"foo": 1}, JsonSerializer())
    session.create_client.assert_not_called()


def test_registry_picks_first_supporting_factory() -> None:
    first = MagicMock()
    first.supports = MagicMock(return_value=True)
    second = MagicMock()
    second.supports = MagicMock(return_value=True)
    registry = TransportFactory([first, second])
    serializer = JsonSerializer()

    result = registry.create_transport("x://y", {"a": 1}, serializer)

    assert result is first.create_transport.return_value
    first.create_transport.assert_called_once_with("x://y", {"a": 1}, serializer)
    second.supports.assert_not_called()


def test_registry_register_appends() -> None:
    registry = TransportFactory()
    assert registry.supports("in-memory://") is False
    memory = InMemoryTransportFactory()
    registry.register(memory)
    assert registry.factories == [memory]
    assert registry.supports("in-memory://") is True


def test_registry_raises_with_hint() -> None:
    registry = default_transport_factory()
    with pytest.raises(UnsupportedSchemeError) as exc_info:
        registry.create_transport("redis://localhost", {}, JsonSerializer())
    assert exc_info.value.dsn == "redis://localhost"
    assert exc_info.value.hint is not None
    assert "pip install redis" in str(exc_info.value)


def test_registry_raises_without_hint() -> None:
    with pytest.raises(UnsupportedSchemeError) as exc_info:
        default_transport_factory().create_transport(
            "invalid-dsn", None, JsonSerializer()
        )
    assert exc_info.value.hint is None
    assert str(exc_info.value) == (
        'No transport supports the given Messenger DSN "invalid-dsn".'
    )


def test_default_registry_order() -> None:
    factories = default_transport_factory().factories
    assert isinstance(factories[0], InMemoryTransportFactory)
    assert [f.service for f in factories[1:]] == ["sqs", "sns"]


def test_default_registry_dispatches_by_scheme() -> None:
    registry = default_transport_factory()
    assert registry.supports("in-memory://")
    assert registry.supports("sqs://default/orders")
    assert registry.supports("sns://localhost")
    assert not registry.supports("redis://localhost")
    transport = registry.create_transport("in-memory://", {}, JsonSerializer())
    assert isinstance(transport, InMemoryTransport)


@pytest.mark.parametrize(
    ("dsn", "fragment"),
    [
        ("amqp://guest@localhost", "aio-pika"),
        ("kafka://broker:9092", "aiokafka"),
        ("doctrine://default", "sqlalchemy"),
    ],
)
def test_suggest_package(dsn: str, fragment: str) -> None:
    hint = suggest_package(dsn)
    assert hint is not None
    assert fragment in hint


def test_suggest_package_unknown_scheme() -> None:
    assert suggest_package("ftp://example.com") is None
