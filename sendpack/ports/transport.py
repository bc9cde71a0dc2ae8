"""Transport port definition (interface and DTO)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

__all__ = ["TransportPort", "TransportResponse"]


@dataclass(slots=True, frozen=True)
class TransportResponse:
    """Raw HTTP response as seen by the dispatcher.

    Attributes:
        status: HTTP status code.
        headers: Response headers; use ``header()`` for lookups.
        body: Full response body.
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def content_type(self) -> str | None:
        return self.header("Content-Type")


class TransportPort(Protocol):
    """Interface for sending one HTTP POST.

    Implementations raise ``TransportError`` (or ``TransportTimeoutError``)
    for network-level failures and return a ``TransportResponse`` for any
    status code.
    """

    async def post(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
        timeout_sec: float,
    ) -> TransportResponse:
        """Send ``body`` to ``url`` and return the full response.

        Args:
            url: Target endpoint.
            body: Serialized request body.
            headers: Request headers.
            timeout_sec: Upper bound for the whole exchange.

        Returns:
            The response, whatever its status.
        """
        ...
