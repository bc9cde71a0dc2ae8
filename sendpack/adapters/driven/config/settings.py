"""Configuration loading from environment variables and files."""

import json
import logging
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from sendpack.core.config import DispatchConfig

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)


def _validate_url(v: str, what: str) -> str:
    try:
        _http_url_adapter.validate_python(v)
    except Exception as e:
        raise ValueError(f"Invalid {what}: {e}") from e
    return v


class Settings(BaseModel):
    """Runtime configuration for the sendpack command.

    Attributes:
        endpoint: HTTP endpoint that will receive the packets.
        payload_file_path: Path to JSON file with the packets to send.
        retries: Max retries per packet (dispatcher default when None).
        timeout_ms: Per-attempt timeout (dispatcher default when None).
        retry_delay_ms: Backoff base (dispatcher default when None).
        headers: Fixed headers sent with every request.
        idempotency_key: Optional Idempotency-Key header value.
        user_agent: Optional User-Agent override.
        http_health_endpoint: Optional endpoint to probe before sending.
        payloads: Packet entries (loaded from file).
    """

    endpoint: str = Field(..., description="HTTP endpoint that will receive packets.")
    payload_file_path: str = Field(..., description="Path to JSON file containing packets.")
    retries: int | None = Field(default=None, ge=0)
    timeout_ms: int | None = Field(default=None, gt=0)
    retry_delay_ms: int | None = Field(default=None, ge=0)
    headers: dict[str, str] = Field(default_factory=dict)
    idempotency_key: str | None = None
    user_agent: str | None = None
    http_health_endpoint: str | None = Field(
        default=None,
        description=(
            "Optional HTTP endpoint to probe for health. "
            "If not set, no health check is performed."
        ),
    )
    payloads: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Packet entries (populated from file).",
    )

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate that endpoint is a valid HTTP(S) URL.

        Raises:
            ValueError: If URL is invalid.
        """
        return _validate_url(v, "endpoint")

    @field_validator("http_health_endpoint")
    @classmethod
    def validate_http_health_endpoint(cls, v: str | None) -> str | None:
        """Validate that health endpoint (if provided) is a valid HTTP(S) URL.

        Raises:
            ValueError: If URL is invalid.
        """
        if v is None:
            return v
        return _validate_url(v, "health endpoint")

    def load_payloads(self) -> None:
        """Load and validate packet entries from the JSON file.

        Raises:
            ValueError: If file not found, invalid JSON, wrong format, or empty.
        """
        try:
            with open(self.payload_file_path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ValueError(f"Payload file not found: {self.payload_file_path}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Payload file contains invalid JSON: {self.payload_file_path}") from e

        if not isinstance(data, list):
            raise ValueError("Payload file must be a JSON array")
        if not data:
            raise ValueError("Payload file is empty")
        if not all(isinstance(x, dict) for x in data):
            raise ValueError("Each payload must be a JSON object")

        self.payloads = data
        logger.debug(f"Loaded {len(data)} payloads from {self.payload_file_path}")

    def to_dispatch_config(self) -> DispatchConfig:
        """Resolve these settings into a dispatcher configuration.

        Raises:
            ConfigurationError: If the combination is rejected.
        """
        return DispatchConfig.build(
            self.endpoint,
            retries=self.retries,
            timeout_ms=self.timeout_ms,
            retry_delay_ms=self.retry_delay_ms,
            headers=self.headers,
            idempotency_key=self.idempotency_key,
            user_agent=self.user_agent,
        )


def _int_env(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer (got: {raw})") from e


def _headers_env(name: str) -> dict[str, str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"{name} must be a JSON object of strings") from e
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise RuntimeError(f"{name} must be a JSON object of strings")
    return data


def load_settings() -> Settings:
    """Load and validate settings from environment and files.

    Required environment variables:
    - SENDPACK_ENDPOINT: Valid HTTP(S) URL receiving the packets.
    - PAYLOAD_FILE_PATH: Path to JSON file with the packets.

    Optional:
    - SENDPACK_RETRIES, SENDPACK_TIMEOUT_MS, SENDPACK_RETRY_DELAY_MS: integers.
    - SENDPACK_HEADERS: JSON object of fixed headers.
    - SENDPACK_IDEMPOTENCY_KEY, SENDPACK_USER_AGENT: header values.
    - HEALTH_CHECK_ENDPOINT: URL to probe before sending.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars missing or malformed.
        ValueError: If configuration is invalid.
    """
    try:
        endpoint = os.environ["SENDPACK_ENDPOINT"]
        payload_path = os.environ["PAYLOAD_FILE_PATH"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    settings = Settings(
        endpoint=endpoint,
        payload_file_path=payload_path,
        retries=_int_env("SENDPACK_RETRIES"),
        timeout_ms=_int_env("SENDPACK_TIMEOUT_MS"),
        retry_delay_ms=_int_env("SENDPACK_RETRY_DELAY_MS"),
        headers=_headers_env("SENDPACK_HEADERS"),
        idempotency_key=os.getenv("SENDPACK_IDEMPOTENCY_KEY") or None,
        user_agent=os.getenv("SENDPACK_USER_AGENT") or None,
        http_health_endpoint=os.getenv("HEALTH_CHECK_ENDPOINT") or None,
    )

    # Load and validate payload file
    settings.load_payloads()

    logger.info(
        f"Sendpack configured: endpoint={settings.endpoint}, "
        f"retries={settings.retries if settings.retries is not None else '<default>'}, "
        f"payloads={len(settings.payloads)}, "
        f"health_check={settings.http_health_endpoint or '<disabled>'}"
    )

    return settings
