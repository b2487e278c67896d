"""In-memory transport adapter for testing."""

from __future__ import annotations

from .factory import InMemoryTransportFactory
from .transport import InMemoryTransport

__all__ = [
    "InMemoryTransport",
    "InMemoryTransportFactory",
]
