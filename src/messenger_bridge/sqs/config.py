"""DSN resolution into a validated, fully defaulted ConnectionConfig."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import InvalidConfigurationError
from ..utils import to_bool

DEFAULT_OPTIONS: dict[str, Any] = {
    "buffer_size": 9,
    "wait_time": 20,
    "poll_timeout": 0.1,
    "visibility_timeout": None,
    "auto_setup": True,
    "access_key": None,
    "secret_key": None,
    "endpoint": None,
    "region": "eu-west-1",
    "queue_name": "messages",
    "account": None,
    "sslmode": None,
    "debug": None,
}


class ConnectionConfig(BaseModel):
    """Immutable connection settings for one queue."""

    model_config = ConfigDict(frozen=True)

    buffer_size: int = Field(default=9, ge=1, description="Messages fetched per poll")
    wait_time: int = Field(default=20, ge=0, description="Long-poll duration (s)")
    poll_timeout: float = Field(
        default=0.1, ge=0, description="How long a get() waits on the long-poll (s)"
    )
    visibility_timeout: int | None = Field(default=None, ge=0)
    auto_setup: bool = True
    queue_name: str = Field(default="messages", min_length=1)
    account: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    region: str = "eu-west-1"
    endpoint: str
    sslmode: str | None = None
    debug: bool = False
    queue_url: str | None = None

    @field_validator("auto_setup", "debug", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        return to_bool(value)

    @field_validator("visibility_timeout", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        return None if value == "" else value

    @property
    def is_fifo(self) -> bool:
        """Return True when the queue name follows the FIFO naming convention."""
        return self.queue_name.endswith(".fifo")


def _check_keys(source: Mapping[str, Any], label: str) -> None:
    extra = [key for key in source if key not in DEFAULT_OPTIONS]
    if extra:
        raise InvalidConfigurationError(
            f"Unknown option found{label}: [{', '.join(extra)}]. "
            f"Allowed options are [{', '.join(DEFAULT_OPTIONS)}]."
        )


def resolve(
    dsn: str,
    options: Mapping[str, Any] | None = None,
    *,
    service: str = "sqs",
) -> ConnectionConfig:
    """Build a :class:`ConnectionConfig` from *dsn* and *options*.

    Query-string values win over *options*, which win over the defaults.
    Credentials embedded in the DSN win over ``access_key``/``secret_key``.
    ``sslmode`` is read after the merge, so it may come from *options* as well
    as from the query string.
    *service* is the hostname prefix of the canonical endpoint
    (``<service>.<region>.amazonaws.com``).

    Raises:
        InvalidConfigurationError: malformed DSN, unknown key, or bad value.
    """
    options = dict(options or {})
    try:
        parsed = urlsplit(dsn)
        port = parsed.port
    except ValueError as e:
        raise InvalidConfigurationError(
            f'The given Amazon {service.upper()} DSN "{dsn}" is invalid.'
        ) from e
    if not parsed.scheme or "://" not in dsn:
        raise InvalidConfigurationError(
            f'The given Amazon {service.upper()} DSN "{dsn}" is invalid.'
        )

    query = dict(parse_qsl(parsed.query, keep_blank_values=True))
    _check_keys(options, "")
    _check_keys(query, " in DSN")
    merged = {**DEFAULT_OPTIONS, **options, **query}

    region = merged["region"]
    host = parsed.hostname or "default"
    if host != "default":
        scheme = "http" if merged["sslmode"] == "disable" else "https"
        endpoint = f"{scheme}://{host}" + (f":{port}" if port else "")
        match = re.match(rf"^{re.escape(service)}\.([^.]+)\.amazonaws\.com$", host)
        if match:
            region = match.group(1)
    elif merged["endpoint"]:
        endpoint = merged["endpoint"]
    else:
        endpoint = f"https://{service}.{region}.amazonaws.com"

    segments = [segment for segment in parsed.path.split("/") if segment]
    queue_name = segments[-1] if segments else merged["queue_name"]
    account = segments[0] if len(segments) == 2 else merged["account"]

    queue_url = None
    if (
        parsed.scheme == "https"
        and host == f"{service}.{region}.amazonaws.com"
        and parsed.path == f"/{account}/{queue_name}"
    ):
        queue_url = f"https://{host}{parsed.path}"

    try:
        return ConnectionConfig(
            buffer_size=merged["buffer_size"],
            wait_time=merged["wait_time"],
            poll_timeout=merged["poll_timeout"],
            visibility_timeout=merged["visibility_timeout"],
            auto_setup=merged["auto_setup"],
            queue_name=queue_name,
            account=account,
            access_key=unquote(parsed.username or "") or merged["access_key"],
            secret_key=unquote(parsed.password or "") or merged["secret_key"],
            region=region,
            endpoint=endpoint,
            sslmode=merged["sslmode"],
            debug=merged["debug"],
            queue_url=queue_url,
        )
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"Invalid Amazon {service.upper()} transport option: {e}"
        ) from e
