"""Tests for batch dispatch and stop handling."""

import asyncio

import pytest

from sendpack.core.dispatcher import Dispatcher
from sendpack.core.runner import dispatch_all, send_unless_stopped
from sendpack.exceptions import ValidationError

__all__ = []

ENDPOINT = "http://localhost:8000/packets"


@pytest.mark.asyncio
async def test_dispatch_all_sends_every_packet(make_transport, make_response) -> None:
    """Every packet should be sent in order."""
    transport = make_transport(make_response(200))
    dispatcher = Dispatcher(ENDPOINT, transport=transport)
    packets = [dispatcher.create(f"pkt-{i}", {"i": i}) for i in range(3)]

    outcomes = await dispatch_all(dispatcher, packets, asyncio.Event())

    assert [o.success for o in outcomes] == [True, True, True]
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_dispatch_all_keeps_failed_outcomes(make_transport, make_response) -> None:
    """Failed sends should be reported, not dropped."""
    transport = make_transport(make_response(400), make_response(200))
    dispatcher = Dispatcher(ENDPOINT, transport=transport)
    packets = [dispatcher.create("a", {}), dispatcher.create("b", {})]

    outcomes = await dispatch_all(dispatcher, packets, asyncio.Event())

    assert [(o.success, o.status) for o in outcomes] == [(False, 400), (True, 200)]


@pytest.mark.asyncio
async def test_dispatch_all_skips_rejected_packets(make_transport, make_response) -> None:
    """A malformed packet should be skipped and the run continue."""
    transport = make_transport(make_response(200))
    dispatcher = Dispatcher(ENDPOINT, transport=transport)
    packets = [dispatcher.create("", {}), dispatcher.create("good", {})]

    outcomes = await dispatch_all(dispatcher, packets, asyncio.Event())

    assert len(outcomes) == 1
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_dispatch_all_does_nothing_when_already_stopped(
    make_transport, make_response
) -> None:
    """A set stop event should prevent any send."""
    transport = make_transport(make_response(200))
    dispatcher = Dispatcher(ENDPOINT, transport=transport)
    stop = asyncio.Event()
    stop.set()

    outcomes = await dispatch_all(dispatcher, [dispatcher.create("a", {})], stop)

    assert outcomes == []
    assert transport.calls == []


@pytest.mark.asyncio
async def test_stop_cancels_in_flight_send(make_transport, make_response, hang) -> None:
    """Setting stop during a hanging send should cancel it and end the run."""
    transport = make_transport(make_response(200), hang)
    dispatcher = Dispatcher(ENDPOINT, transport=transport, timeout_ms=60_000)
    packets = [dispatcher.create(f"pkt-{i}", {}) for i in range(3)]
    stop = asyncio.Event()

    async def stop_soon() -> None:
        while len(transport.calls) < 2:
            await asyncio.sleep(0)
        stop.set()

    stopper = asyncio.create_task(stop_soon())
    outcomes = await asyncio.wait_for(dispatch_all(dispatcher, packets, stop), timeout=5)
    await stopper

    assert len(outcomes) == 1
    assert outcomes[0].success is True
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_send_unless_stopped_returns_outcome(make_transport, make_response) -> None:
    """Without a stop request the outcome should be returned."""
    dispatcher = Dispatcher(ENDPOINT, transport=make_transport(make_response(202)))

    outcome = await send_unless_stopped(dispatcher, dispatcher.create("a", {}), asyncio.Event())

    assert outcome is not None
    assert outcome.status == 202


@pytest.mark.asyncio
async def test_send_unless_stopped_propagates_validation_errors(
    make_transport, make_response
) -> None:
    """Validation errors should reach the caller."""
    dispatcher = Dispatcher(ENDPOINT, transport=make_transport(make_response(200)))

    with pytest.raises(ValidationError):
        await send_unless_stopped(dispatcher, dispatcher.create("", {}), asyncio.Event())
