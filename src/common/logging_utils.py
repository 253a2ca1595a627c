"""Logging helpers shared by the installer, registry client and CLI.

Provides a single root configuration, structured ``extra=`` payloads,
URL redaction for log output and a small wall-clock timer.
"""
from __future__ import annotations

import logging
import os
import re
import sys
import time
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from constants import Constants

_HANDLER_NAME = "nodeget-console"
_SENSITIVE_KEYS = re.compile(r"(token|secret|password|auth|key|sig)", re.IGNORECASE)


def configure_logging() -> None:
    """Attach the console handler to the root logger once.

    The level comes from the NODEGET_LOG_LEVEL environment variable and
    defaults to INFO.
    """
    root = logging.getLogger()
    level_name = os.environ.get(Constants.ENV_LOG_LEVEL, "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(handler)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    Keys whose value is None are dropped so formatters only see populated
    fields.
    """
    return {key: value for key, value in fields.items() if value is not None}


def safe_url(url: str) -> str:
    """Strip userinfo and sensitive query values from a URL for logging."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "[REDACTED]"

    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = [
            (key, "[REDACTED]" if _SENSITIVE_KEYS.search(key) else val)
            for key, val in parse_qsl(query, keep_blank_values=True)
        ]
        query = urlencode(pairs, safe="[]")

    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring elapsed wall-clock time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; still running timers report time so far."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 2)
