"""InMemoryTransportFactory: claims in-memory:// DSNs."""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlsplit

from ..exceptions import InvalidConfigurationError
from ..utils import to_bool
from .transport import InMemoryTransport

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..serialization import Serializer

SCHEME = "in-memory://"
_ALLOWED_OPTIONS = ("serialize",)


class InMemoryTransportFactory:
    """Build :class:`InMemoryTransport` instances.

    The only option is ``serialize`` (DSN query or options map): when true the
    transport round-trips every envelope through the serializer.
    """

    def __init__(self) -> None:
        self._created: weakref.WeakSet[InMemoryTransport] = weakref.WeakSet()

    def supports(self, dsn: str, options: Mapping[str, Any]) -> bool:  # noqa: ARG002
        return dsn.startswith(SCHEME)

    def create_transport(
        self,
        dsn: str,
        options: Mapping[str, Any],
        serializer: Serializer,
    ) -> InMemoryTransport:
        query = dict(parse_qsl(urlsplit(dsn).query, keep_blank_values=True))
        merged = {
            k: v for k, v in {**options, **query}.items() if k != "transport_name"
        }
        extra = [key for key in merged if key not in _ALLOWED_OPTIONS]
        if extra:
            raise InvalidConfigurationError(
                f"Unknown option found: [{', '.join(extra)}]. "
                f"Allowed options are [{', '.join(_ALLOWED_OPTIONS)}]."
            )
        try:
            serialize = to_bool(merged.get("serialize", False))
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e
        transport = InMemoryTransport(serializer if serialize else None)
        self._created.add(transport)
        return transport

    async def reset(self) -> None:
        """Reset every live transport this factory created."""
        for transport in list(self._created):
            await transport.reset()
