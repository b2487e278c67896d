"""AmazonSqsTransportFactory: claims sqs:// (or sns://) DSNs and queue URLs."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from .client import SqsClientManager
from .config import resolve
from .connection import Connection
from .transport import AmazonSqsTransport

if TYPE_CHECKING:
    from collections.abc import Mapping

    from aiobotocore.session import AioSession

    from ..serialization import Serializer


class AmazonSqsTransportFactory:
    """Build :class:`AmazonSqsTransport` instances from DSNs.

    *service* selects the DSN scheme and the canonical hostname the factory
    claims: ``<service>://...`` and ``https://<service>.<region>.amazonaws.com/...``.
    Whatever the service name, the transport speaks the SQS queue API.
    """

    def __init__(
        self,
        service: str = "sqs",
        logger: logging.Logger | None = None,
        *,
        session: AioSession | None = None,
    ) -> None:
        self._service = service
        self._logger = logger
        self._session = session
        self._queue_url_pattern = re.compile(
            rf"^https://{re.escape(service)}\.[\w\-]+\.amazonaws\.com/.+"
        )

    @property
    def service(self) -> str:
        return self._service

    def supports(self, dsn: str, options: Mapping[str, Any]) -> bool:  # noqa: ARG002
        return dsn.startswith(f"{self._service}://") or bool(
            self._queue_url_pattern.match(dsn)
        )

    def create_transport(
        self,
        dsn: str,
        options: Mapping[str, Any],
        serializer: Serializer,
    ) -> AmazonSqsTransport:
        options = {k: v for k, v in options.items() if k != "transport_name"}
        config = resolve(dsn, options, service=self._service)
        clients = SqsClientManager(config, session=self._session)
        connection = Connection(config, clients, logger=self._logger)
        return AmazonSqsTransport(connection, serializer, clients)
