"""Resilient packet dispatcher: validate, POST, classify, retry."""

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any

from sendpack.core.backoff import next_delay_ms, parse_retry_after
from sendpack.core.body import describe_status, parse_body
from sendpack.core.config import DispatchConfig
from sendpack.core.validation import encode_packet
from sendpack.exceptions import TransportError, TransportTimeoutError
from sendpack.ports.metrics import AttemptDto, MetricsPort
from sendpack.ports.outcome import SendOutcome, is_success_status, is_transient_status
from sendpack.ports.packet import Packet
from sendpack.ports.transport import TransportPort

__all__ = ["Dispatcher", "IDEMPOTENCY_HEADER"]

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"
JSON_CONTENT_TYPE = "application/json"


def get_now_time() -> float:
    """Get current monotonic time in seconds from the running event loop."""
    return asyncio.get_running_loop().time()


class Dispatcher:
    """Send packets with a bounded timeout and linear-backoff retries.

    The configuration is frozen at construction, so one dispatcher can serve
    any number of concurrent ``send`` calls. Each call retries strictly
    sequentially and reuses the exact same request bytes and headers on every
    attempt.

    Transport and HTTP failures never escape ``send``; they are reported in
    the returned ``SendOutcome``. Only a malformed packet raises.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        transport: TransportPort,
        retries: int | None = None,
        timeout_ms: int | None = None,
        retry_delay_ms: int | None = None,
        headers: Mapping[str, str] | None = None,
        idempotency_key: str | None = None,
        user_agent: str | None = None,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            endpoint: Absolute http(s) URL receiving the packets.
            transport: HTTP POST primitive used for every attempt.
            retries: Retries after the first attempt (default 2).
            timeout_ms: Per-attempt deadline in milliseconds (default 5000).
            retry_delay_ms: Linear backoff base in milliseconds (default 300).
            headers: Fixed headers added to every request.
            idempotency_key: Default ``Idempotency-Key`` header value.
            user_agent: ``User-Agent`` override.
            metrics: Optional collector notified after each attempt.

        Raises:
            ConfigurationError: If the endpoint or an option is invalid.
        """
        self._config = DispatchConfig.build(
            endpoint,
            retries=retries,
            timeout_ms=timeout_ms,
            retry_delay_ms=retry_delay_ms,
            headers=headers,
            idempotency_key=idempotency_key,
            user_agent=user_agent,
        )
        self._transport = transport
        self._metrics = metrics

    @classmethod
    def from_config(
        cls,
        config: DispatchConfig,
        *,
        transport: TransportPort,
        metrics: MetricsPort | None = None,
    ) -> "Dispatcher":
        """Create a dispatcher from an already resolved configuration."""
        return cls(
            config.endpoint,
            transport=transport,
            retries=config.max_retries,
            timeout_ms=config.timeout_ms,
            retry_delay_ms=config.retry_delay_ms,
            headers=config.headers,
            idempotency_key=config.idempotency_key,
            user_agent=config.user_agent,
            metrics=metrics,
        )

    @property
    def config(self) -> DispatchConfig:
        return self._config

    def create(self, id: str, payload: Mapping[str, Any]) -> Packet:
        """Build a packet stamped with the current time in milliseconds.

        Nothing is validated here; ``send`` does that.
        """
        return Packet(id=id, timestamp=time.time_ns() // 1_000_000, payload=payload)

    def _build_headers(self, idempotency_key: str | None) -> dict[str, str]:
        headers = {"User-Agent": self._config.user_agent}
        for name, value in self._config.headers.items():
            lowered = name.lower()
            if lowered == "content-type":
                continue
            if lowered == "user-agent":
                headers.pop("User-Agent", None)
            headers[name] = value
        # Content type is fixed by the wire format
        headers["Content-Type"] = JSON_CONTENT_TYPE

        key = idempotency_key if idempotency_key is not None else self._config.idempotency_key
        if key:
            headers[IDEMPOTENCY_HEADER] = key
        return headers

    def _record(
        self,
        packet: Packet,
        attempt: int,
        started_at: float,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        if self._metrics is None:
            return
        self._metrics.update(
            AttemptDto(
                packet_id=packet.id,
                attempt=attempt,
                started_at_sec=started_at,
                finished_at_sec=get_now_time(),
                is_failed=status_code is None or not is_success_status(status_code),
                status_code=status_code,
                timed_out=timed_out,
            )
        )
        logger.debug(f"Dispatch metrics: {self._metrics}")

    async def send(self, packet: Packet, *, idempotency_key: str | None = None) -> SendOutcome:
        """Send a packet, retrying transient failures.

        Args:
            packet: Packet to send; never mutated.
            idempotency_key: Overrides the configured ``Idempotency-Key``
                for this call.

        Returns:
            Outcome describing the last attempt and the attempts made.

        Raises:
            ValidationError: If the packet is malformed (no I/O is attempted).
        """
        body = encode_packet(packet)
        headers = self._build_headers(idempotency_key)
        config = self._config
        max_attempts = config.max_retries + 1

        attempt = 0
        last_status = 0
        last_body: Any = None
        last_error: str | None = None

        while attempt < max_attempts:
            attempt += 1
            retry_after_ms: float | None = None
            started_at = get_now_time()
            logger.debug(
                f"Sending packet {packet.id!r} to {config.endpoint} "
                f"(attempt {attempt}/{max_attempts})"
            )

            try:
                response = await asyncio.wait_for(
                    self._transport.post(config.endpoint, body, headers, config.timeout_sec),
                    timeout=config.timeout_sec,
                )
            except (TimeoutError, TransportTimeoutError):
                last_error = f"timeout after {config.timeout_ms}ms"
                self._record(packet, attempt, started_at, timed_out=True)
                logger.warning(f"Packet {packet.id!r} attempt {attempt}: {last_error}")
            except TransportError as e:
                last_error = str(e) or type(e).__name__
                self._record(packet, attempt, started_at)
                logger.warning(
                    f"Packet {packet.id!r} attempt {attempt}: transport error: {last_error}"
                )
            else:
                last_status = response.status
                last_body = parse_body(response.content_type, response.body)
                self._record(packet, attempt, started_at, status_code=last_status)

                if is_success_status(last_status):
                    logger.info(
                        f"Packet {packet.id!r} delivered with HTTP {last_status} "
                        f"after {attempt} attempt(s)"
                    )
                    return SendOutcome(
                        success=True,
                        status=last_status,
                        body=last_body,
                        attempts=attempt,
                    )

                last_error = describe_status(last_status, last_body)
                if not is_transient_status(last_status):
                    logger.warning(f"Packet {packet.id!r} rejected, not retrying: {last_error}")
                    break
                retry_after_ms = parse_retry_after(response.header("Retry-After"))
                logger.warning(f"Packet {packet.id!r} attempt {attempt}: transient {last_error}")

            if attempt < max_attempts:
                delay_ms = next_delay_ms(config.retry_delay_ms, attempt, retry_after_ms)
                logger.debug(f"Retrying packet {packet.id!r} in {delay_ms:.0f}ms")
                await asyncio.sleep(delay_ms / 1000)

        logger.error(f"Packet {packet.id!r} failed after {attempt} attempt(s): {last_error}")
        return SendOutcome(
            success=False,
            status=last_status,
            body=last_body,
            error=last_error,
            attempts=attempt,
        )
