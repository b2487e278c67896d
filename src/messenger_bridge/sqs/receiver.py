"""AmazonSqsReceiver: decode received messages and acknowledge them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..exceptions import (
    MessageDecodingFailedError,
    MessagingSerializationError,
    MessengerError,
    TransportError,
)
from ..serialization import EncodedMessage
from .client import SQS_FAULTS
from .stamps import AmazonSqsReceivedStamp

if TYPE_CHECKING:
    from ..envelope import Envelope
    from ..serialization import Serializer
    from .connection import Connection


class AmazonSqsReceiver:
    """Receive side of the SQS transport."""

    def __init__(self, connection: Connection, serializer: Serializer) -> None:
        self._connection = connection
        self._serializer = serializer

    async def get(self) -> list[Envelope]:
        """Return at most one envelope, stamped with its receipt handle.

        A message that cannot be decoded, body or headers, is deleted from the
        queue before the decoding error is re-raised.
        """
        try:
            raw = await self._connection.get()
        except SQS_FAULTS as e:
            raise TransportError(str(e)) from e
        except MessageDecodingFailedError as e:
            if e.message_id is not None:
                await self._delete(e.message_id)
            raise
        if raw is None:
            return []

        try:
            envelope = self._serializer.decode(
                EncodedMessage(body=raw.body, headers=raw.headers)
            )
        except MessagingSerializationError:
            await self._delete(raw.id)
            raise
        return [envelope.with_stamps(AmazonSqsReceivedStamp(id=raw.id))]

    async def ack(self, envelope: Envelope) -> None:
        """Delete the message from the queue after successful handling."""
        await self._delete(self._find_received_stamp(envelope).id)

    async def reject(self, envelope: Envelope) -> None:
        """Delete the message from the queue without handling it."""
        await self._delete(self._find_received_stamp(envelope).id)

    async def get_message_count(self) -> int:
        try:
            return await self._connection.get_message_count()
        except SQS_FAULTS as e:
            raise TransportError(str(e)) from e

    async def _delete(self, receipt_handle: str) -> None:
        try:
            await self._connection.delete(receipt_handle)
        except SQS_FAULTS as e:
            raise TransportError(str(e)) from e

    @staticmethod
    def _find_received_stamp(envelope: Envelope) -> AmazonSqsReceivedStamp:
        stamp = envelope.last(AmazonSqsReceivedStamp)
        if stamp is None:
            raise MessengerError("No AmazonSqsReceivedStamp found on the envelope.")
        return stamp
