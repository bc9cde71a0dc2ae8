"""Backoff policy between dispatch attempts."""

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

__all__ = ["linear_delay_ms", "parse_retry_after", "next_delay_ms"]


def linear_delay_ms(base_ms: int, attempt: int) -> int:
    """Return ``base_ms * attempt``: deterministic, no jitter."""
    return base_ms * attempt


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Convert a ``Retry-After`` header value into milliseconds.

    Both forms are accepted: delta-seconds (``"2"``) and an HTTP-date, in
    which case the delay is measured from ``now`` and never negative.

    Args:
        value: Raw header value, or None when the header is absent.
        now: Reference time for HTTP-dates (defaults to the current UTC time).

    Returns:
        Delay in milliseconds, or None if the value is missing or unusable.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if value.isascii() and value.isdigit():
        try:
            return int(value) * 1000.0
        except (ValueError, OverflowError):
            return None

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)

    now = now or datetime.now(UTC)
    return max(0.0, (when - now).total_seconds() * 1000.0)


def next_delay_ms(base_ms: int, attempt: int, retry_after_ms: float | None = None) -> float:
    """Pick the wait before the next attempt; ``Retry-After`` wins when present."""
    if retry_after_ms is not None:
        return retry_after_ms
    return float(linear_delay_ms(base_ms, attempt))
