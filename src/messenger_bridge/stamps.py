"""Envelope stamps: metadata attached to a message on its way through transports."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Stamp(BaseModel):
    """Base class for all stamps. Stamps are immutable."""

    model_config = ConfigDict(frozen=True)


class NonSendableStamp(Stamp):
    """Marker for stamps that stay in-process and are never put on the wire."""


class DelayStamp(Stamp):
    """Delay delivery of the message by ``delay`` milliseconds."""

    delay: int = Field(default=0, ge=0, description="Delay in milliseconds")

    @classmethod
    def delay_for_seconds(cls, seconds: int) -> DelayStamp:
        return cls(delay=seconds * 1000)


class TransportMessageIdStamp(NonSendableStamp):
    """Identifier a transport assigned to the message."""

    id: str
