"""Healthcheck validator for container orchestration."""

import logging

from sendpack.adapters.driven.config.settings import load_settings
from sendpack.adapters.driven.logging.logging_config import configure_logs
from sendpack.exceptions import ConfigurationError

__all__ = ["main"]

logger = logging.getLogger(__name__)


def main() -> int:
    """Run health check for container orchestration.

    Validates:
    - Required environment variables are set.
    - Payload file exists and is valid JSON.
    - The settings resolve into a dispatcher configuration.

    Returns:
        0 if healthy, 1 if unhealthy.
    """
    configure_logs()

    try:
        settings = load_settings()
        config = settings.to_dispatch_config()
    except (RuntimeError, ValueError, ConfigurationError) as exc:
        logger.error(f"Sendpack healthcheck FAILED: {exc}")
        return 1

    logger.info(
        f"Sendpack healthcheck OK (endpoint={config.endpoint}, "
        f"max_retries={config.max_retries}, timeout_ms={config.timeout_ms})"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
