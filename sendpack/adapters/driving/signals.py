"""Signal handling for graceful shutdown."""

import asyncio
import logging
import signal

__all__ = ["make_stop_on_sigterm"]

logger = logging.getLogger(__name__)


def make_stop_on_sigterm() -> asyncio.Event:
    """Create a stop event set by SIGTERM or SIGINT.

    The event is raced against in-flight sends, so a termination signal
    cancels the current packet instead of waiting out its retries.

    On Docker/Kubernetes, SIGTERM is sent 30s before SIGKILL,
    allowing graceful shutdown.

    Returns:
        Event that becomes set when a termination signal is received.
    """
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info(f"{sig.name} received, stopping dispatch...")
        stop.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_signal, sig)
        except NotImplementedError:
            logger.debug(f"Signal handlers unsupported here, {sig.name} will not stop dispatch")

    return stop
