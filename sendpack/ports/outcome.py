"""Send outcome port definition (DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sendpack.exceptions import ProtocolError, TransportError

__all__ = ["SendOutcome", "is_success_status", "is_transient_status"]

TRANSIENT_STATUSES = frozenset({408, 429})


def is_success_status(status: int) -> bool:
    """Return True for 2xx statuses."""
    return 200 <= status < 300


def is_transient_status(status: int) -> bool:
    """Return True for statuses worth retrying (408, 429 and any 5xx)."""
    return status in TRANSIENT_STATUSES or 500 <= status < 600


@dataclass(slots=True, frozen=True)
class SendOutcome:
    """Result of one ``Dispatcher.send`` call.

    Attributes:
        success: True when a 2xx response was received.
        status: Last HTTP status seen; 0 if no response was ever obtained.
        body: Parsed body of the last response, or None.
        error: Description of the last failure; None on success.
        attempts: Number of network attempts made (>= 1).
    """

    success: bool
    status: int
    body: Any = None
    error: str | None = None
    attempts: int = 1

    def raise_for_status(self) -> SendOutcome:
        """Return self on success, raise the matching error otherwise.

        Raises:
            TransportError: No response was ever obtained.
            ProtocolError: The endpoint answered with a non-2xx status.
        """
        if self.success:
            return self
        message = self.error or f"HTTP {self.status}"
        if self.status == 0:
            raise TransportError(message)
        raise ProtocolError(
            message,
            status=self.status,
            body=self.body,
            retryable=is_transient_status(self.status),
        )
