"""AmazonSqsSender: envelope-level send on top of a Connection."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from ..exceptions import TransportError
from ..stamps import DelayStamp
from .client import SQS_FAULTS
from .stamps import AmazonSqsFifoStamp

if TYPE_CHECKING:
    from ..envelope import Envelope
    from ..serialization import Serializer
    from .connection import Connection


class AmazonSqsSender:
    """Encode envelopes and hand them to the connection.

    FIFO group / deduplication ids and delays are read from stamps and passed
    as send parameters, never as headers.
    """

    def __init__(self, connection: Connection, serializer: Serializer) -> None:
        self._connection = connection
        self._serializer = serializer

    async def send(self, envelope: Envelope) -> Envelope:
        """Send *envelope*; returns it unchanged."""
        encoded = self._serializer.encode(envelope)

        delay_stamp = envelope.last(DelayStamp)
        delay = math.ceil(delay_stamp.delay / 1000) if delay_stamp is not None else 0

        message_group_id = None
        message_deduplication_id = None
        fifo_stamp = envelope.last(AmazonSqsFifoStamp)
        if fifo_stamp is not None:
            message_group_id = fifo_stamp.message_group_id
            message_deduplication_id = fifo_stamp.message_deduplication_id

        try:
            await self._connection.send(
                encoded.body,
                encoded.headers,
                delay,
                message_group_id,
                message_deduplication_id,
            )
        except SQS_FAULTS as e:
            raise TransportError(str(e)) from e
        return envelope
