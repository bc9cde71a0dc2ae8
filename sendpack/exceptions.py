"""Public exceptions for sendpack."""

from typing import Any

__all__ = [
    "SendPackError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "TransportTimeoutError",
    "ProtocolError",
]


class SendPackError(Exception):
    """Base exception for all sendpack errors."""


class ConfigurationError(SendPackError):
    """Invalid dispatcher configuration (bad endpoint or option)."""


class ValidationError(SendPackError, ValueError):
    """Packet rejected before any network I/O took place."""


class TransportError(SendPackError):
    """Network-level failure: DNS, refused connection, reset, timeout."""


class TransportTimeoutError(TransportError):
    """No response arrived within the attempt deadline."""


class ProtocolError(SendPackError):
    """Non-2xx HTTP status received from the endpoint."""

    def __init__(
        self,
        message: str,
        status: int,
        body: Any = None,
        *,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
        self.retryable = retryable
