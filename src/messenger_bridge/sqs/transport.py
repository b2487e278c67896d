"""AmazonSqsTransport: sender, receiver and queue lifecycle in one object."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..exceptions import TransportError
from .client import SQS_FAULTS
from .receiver import AmazonSqsReceiver
from .sender import AmazonSqsSender

if TYPE_CHECKING:
    from ..envelope import Envelope
    from ..serialization import Serializer
    from .client import SqsClientManager
    from .connection import Connection


class AmazonSqsTransport:
    """SQS adapter implementing the Transport port.

    Use it as an async context manager so that prefetched messages are
    released and the client is closed on every exit path::

        async with factory.create_transport(dsn, {}, serializer) as transport:
            await transport.send(Envelope.wrap(message))
    """

    def __init__(
        self,
        connection: Connection,
        serializer: Serializer,
        clients: SqsClientManager,
    ) -> None:
        """Configure transport.

        Args:
            connection: Queue connection used by sender and receiver.
            serializer: Envelope codec shared by sender and receiver.
            clients: Client manager owned by this transport; closed by close().
        """
        self._connection = connection
        self._serializer = serializer
        self._clients = clients
        self._sender = AmazonSqsSender(connection, serializer)
        self._receiver = AmazonSqsReceiver(connection, serializer)

    @property
    def connection(self) -> Connection:
        return self._connection

    async def send(self, envelope: Envelope) -> Envelope:
        return await self._sender.send(envelope)

    async def get(self) -> list[Envelope]:
        return await self._receiver.get()

    async def ack(self, envelope: Envelope) -> None:
        await self._receiver.ack(envelope)

    async def reject(self, envelope: Envelope) -> None:
        await self._receiver.reject(envelope)

    async def get_message_count(self) -> int:
        return await self._receiver.get_message_count()

    async def setup(self) -> None:
        """Create the queue if it does not exist yet."""
        try:
            await self._connection.setup()
        except SQS_FAULTS as e:
            raise TransportError(str(e)) from e

    async def reset(self) -> None:
        """Hand prefetched messages back to the queue."""
        try:
            await self._connection.reset()
        except SQS_FAULTS as e:
            raise TransportError(str(e)) from e

    async def close(self) -> None:
        """Reset the connection, then close the client."""
        try:
            await self.reset()
        finally:
            await self._clients.close()

    async def health_check(self) -> bool:
        """Return True if SQS is reachable."""
        return await self._clients.health_check()

    async def __aenter__(self) -> AmazonSqsTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
