"""aiohttp transport adapter for the dispatcher."""

import asyncio
import logging
from collections.abc import Mapping
from types import TracebackType

import aiohttp
from aiohttp import ClientTimeout

from sendpack.exceptions import TransportError, TransportTimeoutError
from sendpack.ports.transport import TransportResponse

__all__ = ["AiohttpTransport", "TIMEOUT_ERRORS", "TRANSPORT_ERRORS"]

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 10

# Deadline exceeded while connecting or reading
TIMEOUT_ERRORS = (
    aiohttp.ServerTimeoutError,
    asyncio.TimeoutError,
)

# Every other aiohttp failure below HTTP; ClientError is the base of them all
TRANSPORT_ERRORS = (aiohttp.ClientError,)


class AiohttpTransport:
    """HTTP POST primitive backed by one ``aiohttp.ClientSession``.

    Features:
    - Context manager for proper resource cleanup.
    - Maps aiohttp/asyncio failures onto ``TransportError`` and
      ``TransportTimeoutError``.
    - Reads the full body so the dispatcher never holds an open response.
    - Health check/probe functionality.
    """

    def __init__(self) -> None:
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AiohttpTransport":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close session).

        Args:
            exc_type: Exception type if raised in context.
            exc: Exception instance if raised in context.
            tb: Traceback if raised in context.
        """
        if self.session:
            await self.session.close()
            self.session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")
        return self.session

    async def post(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
        timeout_sec: float,
    ) -> TransportResponse:
        """Single HTTP POST; any status code is returned, not raised.

        Args:
            url: Target endpoint.
            body: Serialized request body.
            headers: Request headers.
            timeout_sec: Total timeout for connect, send and read.

        Returns:
            Status, headers and full body of the response.

        Raises:
            RuntimeError: If session not initialized.
            TransportTimeoutError: If the deadline was exceeded.
            TransportError: On any other network-level failure.
        """
        session = self._require_session()
        try:
            async with session.post(
                url,
                data=body,
                headers=dict(headers),
                timeout=ClientTimeout(total=timeout_sec),
            ) as resp:
                raw = await resp.read()
                return TransportResponse(status=resp.status, headers=dict(resp.headers), body=raw)
        except TIMEOUT_ERRORS as e:
            raise TransportTimeoutError(f"timeout after {timeout_sec * 1000:.0f}ms") from e
        except TRANSPORT_ERRORS as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

    async def probe(self, url: str, timeout: float = PROBE_TIMEOUT) -> bool:
        """Check if HTTP endpoint is reachable with a single GET.

        Args:
            url: URL to probe.
            timeout: Timeout in seconds.

        Returns:
            True if reachable (200 <= status < 300), False otherwise.
        """
        logger.info(f"Probing endpoint {url}...")
        try:
            session = self._require_session()
            async with session.get(
                url, timeout=ClientTimeout(total=timeout), allow_redirects=True
            ) as resp:
                logger.info(f"Probe for {url} returned status {resp.status}")
                return 200 <= resp.status < 300
        except Exception as e:
            logger.warning(f"Probe failed for {url}: {e}")
            return False
