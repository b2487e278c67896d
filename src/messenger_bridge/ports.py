from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .envelope import Envelope
    from .serialization import Serializer


@runtime_checkable
class Transport(Protocol):
    """
    Port for a message transport (SQS, in-memory, …).

    Transports are async context managers; leaving the block releases
    every resource the transport holds.
    """

    async def send(self, envelope: Envelope) -> Envelope:
        """Send *envelope* and return it, possibly with extra stamps."""
        ...

    async def get(self) -> list[Envelope]:
        """Return the envelopes that are ready, possibly none."""
        ...

    async def ack(self, envelope: Envelope) -> None:
        """Acknowledge a handled envelope."""
        ...

    async def reject(self, envelope: Envelope) -> None:
        """Drop an envelope that will not be handled."""
        ...

    async def get_message_count(self) -> int: ...

    async def setup(self) -> None: ...

    async def close(self) -> None: ...

    async def __aenter__(self) -> Any: ...

    async def __aexit__(self, *exc_info: Any) -> None: ...


@runtime_checkable
class TransportFactoryInterface(Protocol):
    """
    Port for building transports from DSNs.

    ``supports`` must be a pure string check: it is called for every
    registered factory on every DSN.
    """

    def supports(self, dsn: str, options: Mapping[str, Any]) -> bool: ...

    def create_transport(
        self,
        dsn: str,
        options: Mapping[str, Any],
        serializer: Serializer,
    ) -> Transport: ...
