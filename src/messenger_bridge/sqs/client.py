"""SQS client management: one aiobotocore client per transport."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiobotocore.session import AioSession
from botocore.exceptions import BotoCoreError, ClientError

if TYPE_CHECKING:
    from .config import ConnectionConfig

logger = logging.getLogger(__name__)

# Faults raised by aiobotocore calls; the facades translate them to TransportError.
SQS_FAULTS = (BotoCoreError, ClientError)


class SqsClientManager:
    """Owns the aiobotocore session and the SQS client built from a config.

    The client is opened lazily on first use and must be released with
    :meth:`close`. Each transport owns its own manager.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        session: AioSession | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Configure from *config*; extra kwargs go to ``create_client``."""
        self._config = config
        self._session = session or AioSession()
        self._client_kwargs = client_kwargs
        self._client: Any = None
        self._client_cm: Any = None
        if config.debug:
            self._session.set_debug_logger()

    def _build_client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "region_name": self._config.region,
            "endpoint_url": self._config.endpoint,
        }
        if self._config.access_key:
            kwargs["aws_access_key_id"] = self._config.access_key
        if self._config.secret_key:
            kwargs["aws_secret_access_key"] = self._config.secret_key
        kwargs.update(self._client_kwargs)
        return kwargs

    async def get_client(self) -> Any:
        """Return the SQS client; create it if needed."""
        if self._client is None:
            self._client_cm = self._session.create_client(
                "sqs", **self._build_client_kwargs()
            )
            self._client = await self._client_cm.__aenter__()
            logger.debug("Opened SQS client for %s", self._config.endpoint)
        return self._client

    async def close(self) -> None:
        """Close the client if open."""
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
            self._client_cm = None
            self._client = None
            logger.debug("Closed SQS client for %s", self._config.endpoint)

    async def health_check(self) -> bool:
        """Return True if we can list queues (lightweight check)."""
        try:
            client = await self.get_client()
            await client.list_queues(MaxResults=1)
            return True
        except SQS_FAULTS:
            return False
