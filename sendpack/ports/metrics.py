"""Metrics port definition (interface and DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = ["AttemptDto", "MetricsPort"]


@dataclass(slots=True, frozen=True)
class AttemptDto:
    """Immutable snapshot of a single dispatch attempt.

    Attributes:
        packet_id: Id of the packet being sent.
        attempt: Attempt number, starting at 1.
        started_at_sec: Monotonic time when the attempt began.
        finished_at_sec: Monotonic time when it ended.
        is_failed: True unless a 2xx response arrived.
        status_code: HTTP status code when a response arrived; None otherwise.
        timed_out: True if the attempt hit its deadline.
    """

    packet_id: str
    attempt: int
    started_at_sec: float
    finished_at_sec: float
    is_failed: bool = False
    status_code: int | None = None
    timed_out: bool = False


class MetricsPort(Protocol):
    """Observer of dispatch attempts.

    ``Dispatcher.send`` reports every finished attempt through update(), from
    inside the event loop, so implementations must not block. str() renders
    the running summary that ends up in the logs.
    """

    def update(self, attempt: AttemptDto, /) -> None:
        """Take note of one finished attempt."""
        ...

    def __str__(self) -> str:
        """One-line summary of the attempts seen so far."""
        ...
