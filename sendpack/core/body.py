"""Defensive parsing of response bodies."""

import codecs
import json
import logging
from typing import Any

__all__ = ["parse_body", "describe_status", "ERROR_BODY_MAX_CHARS"]

logger = logging.getLogger(__name__)

ERROR_BODY_MAX_CHARS = 512


def _split_content_type(content_type: str | None) -> tuple[str, str]:
    """Return ``(media_type, charset)`` with sensible fallbacks."""
    if not content_type:
        return "", "utf-8"
    media_type, *params = content_type.split(";")
    charset = "utf-8"
    for param in params:
        name, _, val = param.partition("=")
        if name.strip().lower() == "charset" and val.strip():
            charset = val.strip().strip('"')
    try:
        codecs.lookup(charset)
    except LookupError:
        charset = "utf-8"
    return media_type.strip().lower(), charset


def _is_json(media_type: str) -> bool:
    return media_type == "application/json" or media_type.endswith("+json")


def parse_body(content_type: str | None, raw: bytes) -> Any:
    """Parse a response body without ever raising.

    JSON content types are decoded as JSON, ``text/*`` as text. Without a
    usable content type JSON is tried first. Malformed JSON falls back to the
    decoded text; an empty body yields None.

    Args:
        content_type: Value of the ``Content-Type`` header, if any.
        raw: Response body bytes.

    Returns:
        Parsed JSON value, text, or None.
    """
    if not raw:
        return None
    media_type, charset = _split_content_type(content_type)
    try:
        text = raw.decode(charset, errors="replace")
    except LookupError:
        # bytes-to-bytes codecs such as hex or zlib
        text = raw.decode("utf-8", errors="replace")
    if not text.strip():
        return None
    if media_type.startswith("text/"):
        return text

    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        if _is_json(media_type):
            logger.debug(f"Malformed {media_type} body, keeping raw text")
        return text


def describe_status(status: int, body: Any) -> str:
    """Build ``"HTTP <status>: <body>"`` (body truncated, omitted if None)."""
    if body is None:
        return f"HTTP {status}"
    text = body if isinstance(body, str) else json.dumps(body, ensure_ascii=False, default=str)
    if len(text) > ERROR_BODY_MAX_CHARS:
        text = text[: ERROR_BODY_MAX_CHARS - 3] + "..."
    return f"HTTP {status}: {text}"
