"""InMemoryTransport: loop-back Transport with assertion helpers for tests."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any

from ..envelope import Envelope
from ..exceptions import MessengerError
from ..serialization import EncodedMessage
from ..stamps import TransportMessageIdStamp

if TYPE_CHECKING:
    from ..serialization import Serializer

_Stored = Envelope | EncodedMessage


class InMemoryTransport:
    """In-memory transport that queues sent envelopes for get().

    When a serializer is given, envelopes are stored encoded and decoded on
    get(), which checks that messages survive a trip through the serializer.
    get_sent(), get_acknowledged() and assert_sent() support test assertions.
    """

    def __init__(self, serializer: Serializer | None = None) -> None:
        """If serializer is None, envelopes are stored as-is."""
        self._serializer = serializer
        self._next_id = 1
        self._queue: deque[tuple[str, _Stored]] = deque()
        self._sent: list[Envelope] = []
        self._acknowledged: list[Envelope] = []
        self._rejected: list[Envelope] = []

    async def send(self, envelope: Envelope) -> Envelope:
        """Queue *envelope* and stamp it with its in-memory id."""
        message_id = str(self._next_id)
        self._next_id += 1
        envelope = envelope.with_stamps(TransportMessageIdStamp(id=message_id))
        stored: _Stored = envelope
        if self._serializer is not None:
            stored = self._serializer.encode(envelope)
        self._queue.append((message_id, stored))
        self._sent.append(envelope)
        return envelope

    async def get(self) -> list[Envelope]:
        """Return the oldest queued envelope, or an empty list."""
        if not self._queue:
            return []
        message_id, stored = self._queue.popleft()
        if isinstance(stored, EncodedMessage) and self._serializer is not None:
            envelope = self._serializer.decode(stored)
            return [envelope.with_stamps(TransportMessageIdStamp(id=message_id))]
        return [stored]

    async def ack(self, envelope: Envelope) -> None:
        self._require_id(envelope)
        self._acknowledged.append(envelope)

    async def reject(self, envelope: Envelope) -> None:
        self._require_id(envelope)
        self._rejected.append(envelope)

    async def get_message_count(self) -> int:
        return len(self._queue)

    async def setup(self) -> None:
        """Nothing to provision."""

    async def reset(self) -> None:
        """Drop every queued and recorded envelope (for test teardown)."""
        self._queue.clear()
        self._sent.clear()
        self._acknowledged.clear()
        self._rejected.clear()

    async def close(self) -> None:
        await self.reset()

    async def health_check(self) -> bool:
        return True

    def get_sent(self) -> list[Envelope]:
        """Return all envelopes sent so far, in order."""
        return list(self._sent)

    def get_acknowledged(self) -> list[Envelope]:
        return list(self._acknowledged)

    def get_rejected(self) -> list[Envelope]:
        return list(self._rejected)

    def assert_sent(self, message_type: type, count: int = 1) -> None:
        """Assert that exactly `count` messages of `message_type` were sent.

        Raises AssertionError if not met.
        """
        matching = [e for e in self._sent if isinstance(e.message, message_type)]
        assert len(matching) == count, (
            f"Expected {count} message(s) of type {message_type.__name__}, "
            f"got {len(matching)}. Sent: "
            f"{[type(e.message).__name__ for e in self._sent]}"
        )

    @staticmethod
    def _require_id(envelope: Envelope) -> None:
        if envelope.last(TransportMessageIdStamp) is None:
            raise MessengerError("No TransportMessageIdStamp found on the envelope.")

    async def __aenter__(self) -> InMemoryTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
