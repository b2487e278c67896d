"""MessageTypeRegistry: maps wire type names to message and stamp classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .stamps import DelayStamp, Stamp

if TYPE_CHECKING:
    from pydantic import BaseModel


def type_name(cls: type) -> str:
    """Return the default wire name of *cls*: its dotted import path."""
    return f"{cls.__module__}.{cls.__qualname__}"


class MessageTypeRegistry:
    """Registry for ``name: str`` → message / stamp class.

    Used by the serializer to reconstruct messages and stamps from their
    wire names. Message classes must be pydantic models.

    Usage::

        registry = MessageTypeRegistry()
        registry.register(OrderPlaced)
        registry.register(OrderPlaced, name="order.placed")
    """

    def __init__(self) -> None:
        self._messages: dict[str, type[BaseModel]] = {}
        self._stamps: dict[str, type[Stamp]] = {}
        self.register_stamp(DelayStamp)

    def register(self, message_class: type[BaseModel], name: str | None = None) -> str:
        """Register a message class; returns the name it was registered under."""
        key = name or type_name(message_class)
        self._messages[key] = message_class
        return key

    def register_stamp(self, stamp_class: type[Stamp]) -> None:
        """Register a sendable stamp class under its class name."""
        self._stamps[stamp_class.__name__] = stamp_class

    def get(self, name: str) -> type[BaseModel] | None:
        return self._messages.get(name)

    def get_stamp(self, name: str) -> type[Stamp] | None:
        return self._stamps.get(name)

    def name_of(self, message_class: type) -> str:
        """Return the registered name of *message_class*, or its dotted path."""
        for key, cls in self._messages.items():
            if cls is message_class:
                return key
        return type_name(message_class)

    def has(self, name: str) -> bool:
        """Return ``True`` if a message class is registered under *name*."""
        return name in self._messages

    def list_registered(self) -> list[str]:
        """Return all registered message type names."""
        return list(self._messages.keys())
