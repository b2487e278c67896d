"""Envelope: immutable wrapper around a message and its stamps."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .stamps import Stamp

S = TypeVar("S", bound=Stamp)


class Envelope(BaseModel):
    """Immutable wrapper for messages travelling through a transport.

    Carries the domain payload (a pydantic model or a plain dict) and an
    ordered tuple of stamps. Every mutator returns a new envelope.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    message: Any
    stamps: tuple[Stamp, ...] = Field(default_factory=tuple)

    @classmethod
    def wrap(cls, message: Any, *stamps: Stamp) -> Envelope:
        """Wrap *message*, or add *stamps* to it when it already is an envelope."""
        if isinstance(message, Envelope):
            return message.with_stamps(*stamps)
        return cls(message=message, stamps=stamps)

    def with_stamps(self, *stamps: Stamp) -> Envelope:
        """Return a copy with *stamps* appended."""
        return self.model_copy(update={"stamps": (*self.stamps, *stamps)})

    def without_stamps(self, stamp_type: type[Stamp]) -> Envelope:
        """Return a copy without any stamp that is an instance of *stamp_type*."""
        kept = tuple(s for s in self.stamps if not isinstance(s, stamp_type))
        return self.model_copy(update={"stamps": kept})

    def last(self, stamp_type: type[S]) -> S | None:
        """Return the most recently added stamp of *stamp_type*, or ``None``."""
        for stamp in reversed(self.stamps):
            if isinstance(stamp, stamp_type):
                return stamp
        return None

    def all(self, stamp_type: type[S]) -> list[S]:
        """Return every stamp of *stamp_type* in insertion order."""
        return [s for s in self.stamps if isinstance(s, stamp_type)]
