"""Utility functions for the webmail backend."""

import html
import logging
import re
import uuid
from datetime import datetime, timezone

import structlog

logger = structlog.get_logger()

_TAG_RE = re.compile(r"<[^>]*>?")
_WHITESPACE_RE = re.compile(r"\s+")

SNIPPET_ELLIPSIS = "..."


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog to drop events below ``level``.

    Args:
        level: Standard logging level name (DEBUG, INFO, ...).
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        logger.warning("unknown_log_level", level=level)
        numeric = logging.INFO

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
    )


def utcnow() -> datetime:
    """Return the current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware values are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_id(prefix: str) -> str:
    """Mint an opaque identifier such as ``email-3f2a...``."""
    return f"{prefix}-{uuid.uuid4().hex}"


def strip_markup(body: str) -> str:
    """Reduce an HTML body to collapsed plain text."""
    text = _TAG_RE.sub(" ", body or "")
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def make_snippet(body: str, length: int = 100) -> str:
    """Build the plain-text preview shown in conversation lists.

    Args:
        body: HTML body of the message.
        length: Maximum number of characters kept before the ellipsis.

    Returns:
        The stripped text, truncated to ``length`` characters with an
        ellipsis appended when anything was cut.
    """
    text = strip_markup(body)
    if len(text) <= length:
        return text
    return text[:length] + SNIPPET_ELLIPSIS
