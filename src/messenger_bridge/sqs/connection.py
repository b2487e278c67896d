"""SQS queue connection: buffered long-polling and header mapping."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

from ..exceptions import (
    ConfigurationError,
    MessageDecodingFailedError,
    ProvisioningError,
)

if TYPE_CHECKING:
    from .client import SqsClientManager
    from .config import ConnectionConfig

_logger = logging.getLogger(__name__)

MESSAGE_ATTRIBUTE_NAME = "X-Messenger-Headers"
APPROXIMATE_NUMBER_OF_MESSAGES = "ApproximateNumberOfMessages"

_NON_EXISTENT_QUEUE_CODES = frozenset(
    {"AWS.SimpleQueueService.NonExistentQueue", "QueueDoesNotExist"}
)
_INVALID_ATTRIBUTE_NAME = re.compile(r"[^a-zA-Z0-9_.-]|\.\.")
_RESERVED_ATTRIBUTE_PREFIXES = ("AWS.", "Amazon.")
_MAX_ATTRIBUTE_NAME_LENGTH = 256
# SQS accepts 10 attributes per message; one is kept for MESSAGE_ATTRIBUTE_NAME.
_MAX_NATIVE_ATTRIBUTES = 9


class SetupState(Enum):
    """Whether a connection still has to run its automatic setup."""

    PENDING = "pending"
    DISABLED = "disabled"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RawMessage:
    """A message as received from the queue, before decoding."""

    id: str
    body: str
    headers: dict[str, str] = field(default_factory=dict)


def is_native_attribute(name: str) -> bool:
    """Return True if *name* can be sent as an SQS message attribute name."""
    return (
        0 < len(name) <= _MAX_ATTRIBUTE_NAME_LENGTH
        and name != MESSAGE_ATTRIBUTE_NAME
        and not name.startswith(".")
        and not name.endswith(".")
        and not name.startswith(_RESERVED_ATTRIBUTE_PREFIXES)
        and _INVALID_ATTRIBUTE_NAME.search(name) is None
    )


class Connection:
    """A connection to one SQS queue.

    Received messages are prefetched into a local FIFO buffer (up to
    ``buffer_size`` per poll). Buffered messages are decoded one at a
    time as :meth:`get` hands them out. A long-poll that does not finish within
    ``poll_timeout`` stays in flight and is picked up by the next
    :meth:`get`. :meth:`reset` must run before the connection is dropped so
    that prefetched messages are handed back to the queue.

    Not safe for concurrent use by several tasks.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        clients: SqsClientManager,
        *,
        setup_attempts: int = 40,
        setup_delay: float = 5.0,
        logger: logging.Logger | None = None,
    ) -> None:
        """Configure the connection.

        Args:
            config: Resolved connection settings.
            clients: Client manager owned by the transport.
            setup_attempts: Existence checks after creating the queue.
            setup_delay: Seconds between those checks.
            logger: Logger to use instead of the module logger.
        """
        self._config = config
        self._clients = clients
        self._setup_attempts = setup_attempts
        self._setup_delay = setup_delay
        self._logger = logger or _logger
        self._queue_url: str | None = config.queue_url
        self._buffer: deque[dict[str, Any]] = deque()
        self._current_receive: asyncio.Task[dict[str, Any]] | None = None
        self._setup_state = (
            SetupState.PENDING if config.auto_setup else SetupState.DISABLED
        )

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def setup_state(self) -> SetupState:
        return self._setup_state

    def _queue_lookup(self) -> dict[str, str]:
        params = {"QueueName": self._config.queue_name}
        if self._config.account is not None:
            params["QueueOwnerAWSAccountId"] = self._config.account
        return params

    async def queue_exists(self) -> bool:
        """Return True if the queue exists and is visible to our credentials."""
        client = await self._clients.get_client()
        try:
            out = await client.get_queue_url(**self._queue_lookup())
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NON_EXISTENT_QUEUE_CODES:
                return False
            raise
        self._queue_url = str(out["QueueUrl"])
        return True

    async def setup(self) -> None:
        """Make sure the queue exists, creating it when allowed.

        An explicit call always checks existence. Once a setup succeeded,
        :meth:`send` and :meth:`get` no longer trigger it automatically.

        Raises:
            ConfigurationError: the queue is missing and an account was given.
            ProvisioningError: the created queue never became visible.
        """
        name = self._config.queue_name
        if await self.queue_exists():
            self._setup_state = SetupState.COMPLETED
            return

        if self._config.account is not None:
            raise ConfigurationError(
                f'The Amazon SQS queue "{name}" does not exist (or you don\'t have '
                "permissions on it), and can't be created when an account is provided."
            )

        params: dict[str, Any] = {"QueueName": name}
        if self._config.is_fifo:
            params["Attributes"] = {"FifoQueue": "true"}
        client = await self._clients.get_client()
        await client.create_queue(**params)
        self._logger.info("Created SQS queue %s", name)

        if not await self._wait_until_exists():
            raise ProvisioningError(f'Failed to create the Amazon SQS queue "{name}".')
        self._setup_state = SetupState.COMPLETED

    async def _wait_until_exists(self) -> bool:
        for attempt in range(1, self._setup_attempts + 1):
            if await self.queue_exists():
                return True
            if attempt < self._setup_attempts:
                await asyncio.sleep(self._setup_delay)
        return False

    async def _get_queue_url(self) -> str:
        if self._queue_url is None:
            client = await self._clients.get_client()
            out = await client.get_queue_url(**self._queue_lookup())
            self._queue_url = str(out["QueueUrl"])
            self._logger.debug(
                "Resolved queue %s to %s", self._config.queue_name, self._queue_url
            )
        return self._queue_url

    async def send(
        self,
        body: str,
        headers: dict[str, str],
        delay: int = 0,
        message_group_id: str | None = None,
        message_deduplication_id: str | None = None,
    ) -> None:
        """Send one message.

        Headers that are valid attribute names become native attributes; the
        rest travel as one JSON object under ``X-Messenger-Headers``.
        """
        if self._setup_state is SetupState.PENDING:
            await self.setup()

        attributes: dict[str, dict[str, str]] = {}
        special_headers: dict[str, str] = {}
        for name, value in headers.items():
            if (
                value != ""
                and len(attributes) < _MAX_NATIVE_ATTRIBUTES
                and is_native_attribute(name)
            ):
                attributes[name] = {"DataType": "String", "StringValue": value}
            else:
                special_headers[name] = value
        if special_headers:
            attributes[MESSAGE_ATTRIBUTE_NAME] = {
                "DataType": "String",
                "StringValue": json.dumps(special_headers),
            }

        params: dict[str, Any] = {
            "QueueUrl": await self._get_queue_url(),
            "MessageBody": body,
            "DelaySeconds": delay,
            "MessageAttributes": attributes,
        }
        if message_group_id is not None:
            params["MessageGroupId"] = message_group_id
        if message_deduplication_id is not None:
            params["MessageDeduplicationId"] = message_deduplication_id

        client = await self._clients.get_client()
        await client.send_message(**params)
        self._logger.debug("Sent message to %s", self._config.queue_name)

    async def get(self) -> RawMessage | None:
        """Return the next message, or None when none arrived within poll_timeout.

        Raises:
            MessageDecodingFailedError: the next message has malformed headers.
                It is removed from the buffer; the rest stay buffered.
        """
        if self._setup_state is SetupState.PENDING:
            await self.setup()

        if self._buffer:
            return self._to_raw_message(self._buffer.popleft())

        if self._current_receive is None:
            self._current_receive = asyncio.ensure_future(self._receive_messages())
        if not await self._fetch_messages():
            return None
        if not self._buffer:
            return None
        return self._to_raw_message(self._buffer.popleft())

    async def _receive_messages(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "QueueUrl": await self._get_queue_url(),
            "MaxNumberOfMessages": self._config.buffer_size,
            "MessageAttributeNames": ["All"],
            "WaitTimeSeconds": self._config.wait_time,
        }
        if self._config.visibility_timeout is not None:
            params["VisibilityTimeout"] = self._config.visibility_timeout
        client = await self._clients.get_client()
        result: dict[str, Any] = await client.receive_message(**params)
        return result

    async def _fetch_messages(self) -> bool:
        """Move the in-flight poll's messages into the buffer if it has finished."""
        task = self._current_receive
        if task is None:
            return False
        done, _ = await asyncio.wait({task}, timeout=self._config.poll_timeout)
        if not done:
            return False
        self._current_receive = None
        messages = task.result().get("Messages") or []
        self._buffer.extend(messages)
        self._logger.debug(
            "Received %d message(s) from %s", len(messages), self._config.queue_name
        )
        return True

    @staticmethod
    def _to_raw_message(message: dict[str, Any]) -> RawMessage:
        """Build a RawMessage from one received SQS message.

        Raises:
            MessageDecodingFailedError: the reserved header attribute is not a
                JSON object; ``message_id`` carries the receipt handle.
        """
        receipt_handle = message["ReceiptHandle"]
        attributes = dict(message.get("MessageAttributes") or {})
        headers: dict[str, str] = {}
        special = attributes.pop(MESSAGE_ATTRIBUTE_NAME, None)
        if special is not None and special.get("DataType") == "String":
            try:
                decoded = json.loads(special["StringValue"])
            except ValueError as e:
                raise MessageDecodingFailedError(
                    f'Could not decode the "{MESSAGE_ATTRIBUTE_NAME}" attribute: {e}',
                    message_id=receipt_handle,
                ) from e
            if not isinstance(decoded, dict):
                raise MessageDecodingFailedError(
                    f'The "{MESSAGE_ATTRIBUTE_NAME}" attribute is not a JSON object.',
                    message_id=receipt_handle,
                )
            headers.update(decoded)
        for name, attribute in attributes.items():
            if attribute.get("DataType") != "String":
                continue
            headers[name] = attribute["StringValue"]
        return RawMessage(
            id=receipt_handle,
            body=message.get("Body", ""),
            headers=headers,
        )

    async def delete(self, receipt_handle: str) -> None:
        """Delete (acknowledge) a message by its receipt handle."""
        client = await self._clients.get_client()
        await client.delete_message(
            QueueUrl=await self._get_queue_url(),
            ReceiptHandle=receipt_handle,
        )

    async def get_message_count(self) -> int:
        """Return the approximate number of visible messages in the queue."""
        client = await self._clients.get_client()
        out = await client.get_queue_attributes(
            QueueUrl=await self._get_queue_url(),
            AttributeNames=[APPROXIMATE_NUMBER_OF_MESSAGES],
        )
        attributes = out.get("Attributes") or {}
        return int(attributes.get(APPROXIMATE_NUMBER_OF_MESSAGES, 0))

    async def reset(self) -> None:
        """Release prefetched messages back to the queue.

        An in-flight poll gets one last ``poll_timeout`` to finish, otherwise
        it is cancelled. Every buffered message then has its visibility
        timeout set to 0 so other consumers can pick it up immediately.
        """
        task = self._current_receive
        if task is not None and not await self._fetch_messages():
            task.cancel()
            self._current_receive = None
            self._logger.debug(
                "Cancelled in-flight receive on %s", self._config.queue_name
            )

        if not self._buffer:
            return
        client = await self._clients.get_client()
        queue_url = await self._get_queue_url()
        while self._buffer:
            message = self._buffer.popleft()
            await client.change_message_visibility(
                QueueUrl=queue_url,
                ReceiptHandle=message["ReceiptHandle"],
                VisibilityTimeout=0,
            )
            self._logger.debug(
                "Released message %s back to %s", message["ReceiptHandle"], queue_url
            )
