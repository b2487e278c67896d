"""TransportFactory: pick the transport adapter that claims a DSN."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import UnsupportedSchemeError
from .memory import InMemoryTransportFactory
from .sqs import AmazonSqsTransportFactory

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .ports import Transport, TransportFactoryInterface
    from .serialization import Serializer

logger = logging.getLogger(__name__)

# Best-effort install hints for DSN schemes no bundled factory handles.
_PACKAGE_SUGGESTIONS: tuple[tuple[str, str], ...] = (
    ("amqp://", 'Run "pip install aio-pika" and register an AMQP transport factory.'),
    ("kafka://", 'Run "pip install aiokafka" and register a Kafka transport factory.'),
    ("redis://", 'Run "pip install redis" and register a Redis transport factory.'),
    (
        "doctrine://",
        'Run "pip install sqlalchemy" and register a database transport factory.',
    ),
)


def suggest_package(dsn: str) -> str | None:
    """Return an install hint for *dsn*, or None when the scheme is unknown."""
    for prefix, hint in _PACKAGE_SUGGESTIONS:
        if dsn.startswith(prefix):
            return hint
    return None


class TransportFactory:
    """Ordered registry of transport factories.

    Factories are asked in registration order; the first whose ``supports``
    returns True builds the transport.

    Usage::

        factory = TransportFactory(
            [InMemoryTransportFactory(), AmazonSqsTransportFactory()]
        )
        transport = factory.create_transport(
            "sqs://default/orders", {}, JsonSerializer()
        )
    """

    def __init__(self, factories: Iterable[TransportFactoryInterface] = ()) -> None:
        self._factories: list[TransportFactoryInterface] = list(factories)

    def register(self, factory: TransportFactoryInterface) -> None:
        """Append *factory*; it is consulted after every existing one."""
        self._factories.append(factory)
        logger.debug("Registered transport factory %s", type(factory).__name__)

    @property
    def factories(self) -> list[TransportFactoryInterface]:
        return list(self._factories)

    def supports(self, dsn: str, options: Mapping[str, Any] | None = None) -> bool:
        options = options or {}
        return any(factory.supports(dsn, options) for factory in self._factories)

    def create_transport(
        self,
        dsn: str,
        options: Mapping[str, Any] | None,
        serializer: Serializer,
    ) -> Transport:
        """Build a transport for *dsn*.

        Raises:
            UnsupportedSchemeError: no registered factory claims *dsn*.
        """
        options = options or {}
        for factory in self._factories:
            if factory.supports(dsn, options):
                logger.debug("Creating transport with %s", type(factory).__name__)
                return factory.create_transport(dsn, options, serializer)

        raise UnsupportedSchemeError(dsn, suggest_package(dsn))


def default_transport_factory(
    logger: logging.Logger | None = None,
) -> TransportFactory:
    """Return a registry with the bundled in-memory, sqs and sns factories."""
    return TransportFactory(
        [
            InMemoryTransportFactory(),
            AmazonSqsTransportFactory("sqs", logger),
            AmazonSqsTransportFactory("sns", logger),
        ]
    )
