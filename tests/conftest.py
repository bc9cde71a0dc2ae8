"""Shared fakes for sendpack tests."""

import asyncio
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from sendpack.ports.transport import TransportResponse

HANG = object()


@dataclass
class Call:
    """One recorded POST."""

    url: str
    body: bytes
    headers: dict[str, str]
    timeout_sec: float


class FakeTransport:
    """Scripted transport: each POST consumes the next step.

    A step is a TransportResponse, an exception to raise, a callable taking
    the recorded Call, or HANG (never answers). The last step repeats.
    """

    def __init__(self, *steps: Any) -> None:
        self.steps = list(steps)
        self.calls: list[Call] = []

    async def post(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
        timeout_sec: float,
    ) -> TransportResponse:
        call = Call(url=url, body=body, headers=dict(headers), timeout_sec=timeout_sec)
        self.calls.append(call)
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if step is HANG:
            await asyncio.Event().wait()
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step(call)
        return step


def response(status: int, body: bytes = b"", **headers: str) -> TransportResponse:
    """Build a TransportResponse; header kwargs use underscores for dashes."""
    return TransportResponse(
        status=status,
        headers={name.replace("_", "-"): value for name, value in headers.items()},
        body=body,
    )


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    """Factory for scripted fake transports."""
    return FakeTransport


@pytest.fixture
def make_response() -> Callable[..., TransportResponse]:
    """Factory for transport responses."""
    return response


@pytest.fixture
def no_sleep() -> Iterator[AsyncMock]:
    """Skip backoff waits, recording the requested delays."""
    mock_sleep = AsyncMock()
    with patch("sendpack.core.dispatcher.asyncio.sleep", mock_sleep):
        yield mock_sleep


@pytest.fixture
def hang() -> object:
    """Step that makes the fake transport never answer."""
    return HANG
