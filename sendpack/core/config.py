"""Immutable dispatcher configuration."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, field_validator

from sendpack._version import __version__
from sendpack.core.validation import format_issues
from sendpack.exceptions import ConfigurationError

__all__ = [
    "DEFAULT_RETRIES",
    "DEFAULT_RETRY_DELAY_MS",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_USER_AGENT",
    "DispatchConfig",
]

DEFAULT_RETRIES = 2
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_RETRY_DELAY_MS = 300
DEFAULT_USER_AGENT = f"sendpack/{__version__}"

_http_url_adapter = TypeAdapter(HttpUrl)


class DispatchConfig(BaseModel):
    """Dispatcher settings, resolved once and never mutated afterwards.

    Numeric options are strict: booleans, floats and strings are rejected
    rather than coerced, and out-of-range values raise instead of falling
    back to defaults.

    Attributes:
        endpoint: Absolute http(s) URL receiving the packets.
        max_retries: Retries after the first attempt (total attempts = +1).
        timeout_ms: Deadline of a single attempt.
        retry_delay_ms: Linear backoff base; attempt N waits N times this.
        headers: Fixed headers sent with every attempt.
        idempotency_key: Value of the ``Idempotency-Key`` header, if any.
        user_agent: ``User-Agent`` header value.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(..., description="Endpoint receiving the packets.")
    max_retries: int = Field(default=DEFAULT_RETRIES, ge=0, strict=True)
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0, strict=True)
    retry_delay_ms: int = Field(default=DEFAULT_RETRY_DELAY_MS, ge=0, strict=True)
    headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    idempotency_key: str | None = Field(default=None, min_length=1)
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate that endpoint is an absolute HTTP(S) URL.

        Args:
            v: Endpoint URL to validate.

        Returns:
            The URL exactly as given.

        Raises:
            ValueError: If the URL is empty or invalid.
        """
        if not v or not v.strip():
            raise ValueError("Endpoint URL is required")
        try:
            _http_url_adapter.validate_python(v)
        except pydantic.ValidationError as e:
            raise ValueError(f"Invalid endpoint URL {v!r}") from e
        return v

    @field_validator("headers", mode="after")
    @classmethod
    def freeze_headers(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def build(
        cls,
        endpoint: str,
        *,
        retries: int | None = None,
        timeout_ms: int | None = None,
        retry_delay_ms: int | None = None,
        headers: Mapping[str, str] | None = None,
        idempotency_key: str | None = None,
        user_agent: str | None = None,
    ) -> "DispatchConfig":
        """Resolve options into a config, applying defaults for ``None``.

        Raises:
            ConfigurationError: If the endpoint or any option is invalid.
        """
        options: dict[str, Any] = {
            "max_retries": retries,
            "timeout_ms": timeout_ms,
            "retry_delay_ms": retry_delay_ms,
            "headers": headers,
            "idempotency_key": idempotency_key,
            "user_agent": user_agent,
        }
        try:
            return cls(
                endpoint=endpoint,
                **{name: value for name, value in options.items() if value is not None},
            )
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid dispatcher configuration: {format_issues(e)}") from e
