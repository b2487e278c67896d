"""Serializers: turn envelopes into (body, headers) pairs and back."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from .envelope import Envelope
from .exceptions import MessageDecodingFailedError, MessagingSerializationError
from .registry import MessageTypeRegistry
from .stamps import NonSendableStamp, Stamp

DICT_TYPE = "dict"
STAMP_HEADER_PREFIX = "X-Message-Stamp-"


@dataclass(frozen=True)
class EncodedMessage:
    """Wire representation of an envelope: a text body plus string headers."""

    body: str
    headers: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class Serializer(Protocol):
    """
    Port for envelope encoding.

    Transports only ever see :class:`EncodedMessage` instances.
    """

    def encode(self, envelope: Envelope) -> EncodedMessage: ...

    def decode(self, encoded: EncodedMessage) -> Envelope: ...


def _json_serializer(obj: Any) -> Any:
    """Serialize datetime and other non-JSON types."""
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class JsonSerializer:
    """JSON serializer backed by a :class:`MessageTypeRegistry`.

    The body is the JSON form of the message. Headers carry the message
    ``type``, the content type, and one ``X-Message-Stamp-<Class>`` header per
    sendable stamp class holding a JSON list of those stamps.
    """

    def __init__(self, registry: MessageTypeRegistry | None = None) -> None:
        self._registry = registry or MessageTypeRegistry()

    @property
    def registry(self) -> MessageTypeRegistry:
        return self._registry

    def encode(self, envelope: Envelope) -> EncodedMessage:
        """Encode *envelope*; non-sendable stamps are left out."""
        message = envelope.message
        try:
            if isinstance(message, BaseModel):
                body = message.model_dump_json()
                kind = self._registry.name_of(type(message))
            elif isinstance(message, dict):
                body = json.dumps(message, default=_json_serializer)
                kind = DICT_TYPE
            else:
                raise MessagingSerializationError(
                    f"Cannot encode message of type {type(message).__name__}: "
                    "expected a pydantic model or a dict"
                )
            headers = {"type": kind, "Content-Type": "application/json"}
            headers.update(self._encode_stamps(envelope.stamps))
        except (TypeError, ValueError) as e:
            raise MessagingSerializationError(str(e)) from e
        return EncodedMessage(body=body, headers=headers)

    def decode(self, encoded: EncodedMessage) -> Envelope:
        """Decode *encoded* back into an envelope."""
        if not encoded.body:
            raise MessageDecodingFailedError('Encoded envelope should have a "body".')
        kind = encoded.headers.get("type")
        if not kind:
            raise MessageDecodingFailedError(
                'Encoded envelope does not have a "type" header.'
            )
        try:
            message = self._decode_message(kind, encoded.body)
            stamps = self._decode_stamps(encoded.headers)
        except (TypeError, ValueError) as e:
            raise MessageDecodingFailedError(
                f"Could not decode message: {e}"
            ) from e
        return Envelope(message=message, stamps=tuple(stamps))

    def _decode_message(self, kind: str, body: str) -> Any:
        if kind == DICT_TYPE:
            data = json.loads(body)
            if not isinstance(data, dict):
                raise MessageDecodingFailedError("Message body is not a JSON object.")
            return data
        message_class = self._registry.get(kind)
        if message_class is None:
            raise MessageDecodingFailedError(
                f'Message type "{kind}" is not registered.'
            )
        return message_class.model_validate_json(body)

    def _encode_stamps(self, stamps: tuple[Stamp, ...]) -> dict[str, str]:
        grouped: dict[str, list[dict[str, Any]]] = {}
        for stamp in stamps:
            if isinstance(stamp, NonSendableStamp):
                continue
            name = STAMP_HEADER_PREFIX + type(stamp).__name__
            grouped.setdefault(name, []).append(stamp.model_dump(mode="json"))
        return {name: json.dumps(items) for name, items in grouped.items()}

    def _decode_stamps(self, headers: dict[str, str]) -> list[Stamp]:
        stamps: list[Stamp] = []
        for name, value in headers.items():
            if not name.startswith(STAMP_HEADER_PREFIX):
                continue
            stamp_name = name[len(STAMP_HEADER_PREFIX) :]
            stamp_class = self._registry.get_stamp(stamp_name)
            if stamp_class is None:
                raise MessageDecodingFailedError(
                    f'Stamp type "{stamp_name}" is not registered.'
                )
            stamps.extend(
                stamp_class.model_validate(item) for item in json.loads(value)
            )
        return stamps
