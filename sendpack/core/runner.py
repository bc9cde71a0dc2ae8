"""Batch dispatch with caller-controlled early stop."""

import asyncio
import logging
from collections.abc import Sequence

from sendpack.core.dispatcher import Dispatcher
from sendpack.exceptions import ValidationError
from sendpack.ports.outcome import SendOutcome
from sendpack.ports.packet import Packet

__all__ = ["dispatch_all", "send_unless_stopped"]

logger = logging.getLogger(__name__)


async def send_unless_stopped(
    dispatcher: Dispatcher,
    packet: Packet,
    stop: asyncio.Event,
) -> SendOutcome | None:
    """Race one ``send`` against a stop event.

    Args:
        dispatcher: Dispatcher used for the send.
        packet: Packet to send.
        stop: Event that aborts the send when set.

    Returns:
        The outcome, or None if ``stop`` fired first and the in-flight send
        was cancelled.

    Raises:
        ValidationError: If the packet is malformed.
    """
    if stop.is_set():
        return None

    send_task = asyncio.create_task(dispatcher.send(packet))
    stop_task = asyncio.create_task(stop.wait())
    try:
        done, _ = await asyncio.wait({send_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (send_task, stop_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(send_task, stop_task, return_exceptions=True)

    if send_task in done:
        return send_task.result()
    logger.info(f"Send of packet {packet.id!r} cancelled by stop request")
    return None


async def dispatch_all(
    dispatcher: Dispatcher,
    packets: Sequence[Packet],
    stop: asyncio.Event,
) -> list[SendOutcome]:
    """Send packets one after another until done or stopped.

    Notes:
        - A rejected packet or an unexpected error is logged and skipped;
          the run goes on with the next packet.
        - Once ``stop`` is set no new packet is started and the in-flight
          one is cancelled.

    Args:
        dispatcher: Dispatcher used for every send.
        packets: Packets to send, in order.
        stop: Event that ends the run early.

    Returns:
        Outcomes of the sends that completed, in order.
    """
    outcomes: list[SendOutcome] = []

    for index, packet in enumerate(packets):
        if stop.is_set():
            logger.info(f"Stop requested, {len(packets) - index} packet(s) left unsent")
            break

        try:
            outcome = await send_unless_stopped(dispatcher, packet, stop)
        except ValidationError as e:
            logger.error(f"Packet {packet.id!r} rejected: {e}")
            continue
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected error sending packet {packet.id!r}: {e}", exc_info=True)
            continue

        if outcome is None:
            logger.info(f"Stop requested, {len(packets) - index} packet(s) left unsent")
            break

        if outcome.success:
            logger.info(
                f"Packet {packet.id!r}: HTTP {outcome.status} in {outcome.attempts} attempt(s)"
            )
        else:
            logger.warning(
                f"Packet {packet.id!r} failed: status={outcome.status} "
                f"attempts={outcome.attempts} error={outcome.error}"
            )
        outcomes.append(outcome)

    return outcomes
