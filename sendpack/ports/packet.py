"""Packet port definition (DTO)."""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

__all__ = ["Packet"]


@dataclass(slots=True, frozen=True)
class Packet:
    """Outbound message handed to the dispatcher.

    A mapping payload is copied into a read-only view on construction, so the
    packet cannot change between creation and sending. Anything else is kept
    as-is and rejected later by ``Dispatcher.send``.

    Attributes:
        id: Caller-supplied identifier used for tracing and idempotency.
        timestamp: Creation time in milliseconds since the epoch.
        payload: Key-ordered mapping of opaque payload fields.
    """

    id: str
    timestamp: int
    payload: Mapping[str, Any]

    def __post_init__(self) -> None:
        if isinstance(self.payload, Mapping) and not isinstance(self.payload, MappingProxyType):
            object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready representation sent on the wire."""
        return {"id": self.id, "timestamp": self.timestamp, "payload": dict(self.payload)}
