"""Application entrypoint."""

import asyncio
import logging
import uuid
from collections.abc import Iterable
from typing import Any

from sendpack.adapters.driven.config.settings import Settings, load_settings
from sendpack.adapters.driven.http.client import AiohttpTransport
from sendpack.adapters.driven.logging.logging_config import configure_logs
from sendpack.adapters.driven.metrics.dispatch_metrics import Metrics
from sendpack.adapters.driving.signals import make_stop_on_sigterm
from sendpack.core.dispatcher import Dispatcher
from sendpack.core.runner import dispatch_all
from sendpack.exceptions import ConfigurationError
from sendpack.ports.packet import Packet

__all__ = ["main", "run", "build_packets"]

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_packets(dispatcher: Dispatcher, entries: Iterable[dict[str, Any]]) -> list[Packet]:
    """Turn payload file entries into packets.

    An entry with a string ``id`` and an object ``payload`` is used as-is;
    any other object becomes the payload of a packet with a random id.
    """
    packets = []
    for entry in entries:
        if isinstance(entry.get("id"), str) and isinstance(entry.get("payload"), dict):
            packets.append(dispatcher.create(entry["id"], entry["payload"]))
        else:
            packets.append(dispatcher.create(str(uuid.uuid4()), entry))
    return packets


async def main() -> int:
    """Start the sendpack dispatch run.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Optionally probe consumer health.
    4. Dispatch every packet from the payload file.
    5. Stop early on SIGTERM/SIGINT.

    Returns:
        0 if every packet was delivered, 1 otherwise, 2 on bad configuration.
    """
    configure_logs()
    logger.info("Starting sendpack...")

    try:
        settings = load_settings()
        config = settings.to_dispatch_config()
    except (RuntimeError, ValueError, ConfigurationError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check SENDPACK_ENDPOINT, PAYLOAD_FILE_PATH, the numeric SENDPACK_* "
            "options and that the payload file exists and is valid JSON.",
            exc,
        )
        return EXIT_CONFIG

    metrics = Metrics()

    async with AiohttpTransport() as transport:
        if not await optional_endpoint_health_check(settings, transport):
            return EXIT_FAILED

        dispatcher = Dispatcher.from_config(config, transport=transport, metrics=metrics)
        packets = build_packets(dispatcher, settings.payloads)

        try:
            outcomes = await dispatch_all(dispatcher, packets, stop=make_stop_on_sigterm())
        except Exception as e:
            logger.error(f"Unhandled exception in dispatch run: {e}", exc_info=True)
            return EXIT_FAILED

    delivered = sum(1 for o in outcomes if o.success)
    logger.info(f"Sendpack finished: {delivered}/{len(packets)} packet(s) delivered. {metrics}")
    return EXIT_OK if delivered == len(packets) else EXIT_FAILED


async def optional_endpoint_health_check(settings: Settings, transport: AiohttpTransport) -> bool:
    """Perform optional health check before dispatching.

    Only runs if HEALTH_CHECK_ENDPOINT is configured.

    Args:
        settings: Runtime settings.
        transport: HTTP transport used for probing.

    Returns:
        True if healthy or check disabled, False if check failed.
    """
    if settings.http_health_endpoint:
        logger.info(f"Performing health check on {settings.http_health_endpoint}...")
        if not await transport.probe(url=settings.http_health_endpoint):
            logger.error(
                f"Health check failed for {settings.http_health_endpoint}, aborting startup"
            )
            return False

        logger.info("Health check passed, starting dispatch...")
    return True


def run() -> None:
    """Console script entrypoint."""
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C).")
        code = EXIT_FAILED
    raise SystemExit(code)


if __name__ == "__main__":
    run()
