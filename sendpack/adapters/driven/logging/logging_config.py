"""Console logging setup for sendpack."""

import logging
import os

__all__ = ["configure_logs"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%d/%m/%y %H:%M:%S"
HANDLER_NAME = "sendpack"


def configure_logs(level: str | None = None) -> None:
    """Configure console logging.

    Sets up:
    - Root logger at INFO level with a single sendpack console handler.
    - Framework loggers (aiohttp, asyncio) at WARNING level.
    - Application loggers (sendpack) at ``level``, else SENDPACK_LOG_LEVEL,
      else DEBUG.

    Calling it again does not add a second handler.

    Args:
        level: Optional level name for the sendpack loggers.
    """
    level_name = (level or os.getenv("SENDPACK_LOG_LEVEL") or "DEBUG").upper()
    app_level = logging.getLevelName(level_name)
    if not isinstance(app_level, int):
        app_level = logging.DEBUG

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler.set_name(HANDLER_NAME)
        root.addHandler(handler)

    # Suppress verbose framework loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger("sendpack").setLevel(app_level)
