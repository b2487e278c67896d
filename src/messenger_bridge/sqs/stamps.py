"""Stamps specific to the Amazon SQS transport."""

from __future__ import annotations

from ..stamps import NonSendableStamp


class AmazonSqsFifoStamp(NonSendableStamp):
    """Group and deduplication ids for FIFO queues."""

    message_group_id: str | None = None
    message_deduplication_id: str | None = None


class AmazonSqsReceivedStamp(NonSendableStamp):
    """Receipt handle of a received message, needed to ack or reject it."""

    id: str
