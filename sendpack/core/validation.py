"""Packet validation and wire encoding."""

import json
from collections.abc import Mapping
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from sendpack.exceptions import ValidationError
from sendpack.ports.packet import Packet

__all__ = ["PacketSchema", "encode_packet", "format_issues", "validate_packet"]


class PacketSchema(BaseModel):
    """Structural contract every packet must meet before it is sent."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., min_length=1)
    timestamp: int = Field(..., ge=0)
    payload: dict[str, Any]


def format_issues(exc: pydantic.ValidationError) -> str:
    """Flatten pydantic errors into ``"field: message; ..."``."""
    issues = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        issues.append(f"{location}: {err['msg']}")
    return "; ".join(issues)


def validate_packet(packet: Any) -> dict[str, Any]:
    """Check a packet and return its wire representation.

    Args:
        packet: Object handed to ``Dispatcher.send``.

    Returns:
        JSON-ready dict with ``id``, ``timestamp`` and ``payload``.

    Raises:
        ValidationError: If the packet is malformed.
    """
    if not isinstance(packet, Packet):
        raise ValidationError(f"Invalid packet: expected Packet, got {type(packet).__name__}")

    payload = dict(packet.payload) if isinstance(packet.payload, Mapping) else packet.payload
    try:
        PacketSchema.model_validate(
            {"id": packet.id, "timestamp": packet.timestamp, "payload": payload}
        )
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid packet: {format_issues(e)}") from e

    return packet.to_wire()


def encode_packet(packet: Any) -> bytes:
    """Validate a packet and serialize it to compact UTF-8 JSON.

    Raises:
        ValidationError: If the packet is malformed or its payload is not
            JSON-serializable.
    """
    wire = validate_packet(packet)
    try:
        text = json.dumps(wire, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid packet: payload is not JSON-serializable: {e}") from e
    return text.encode("utf-8")
