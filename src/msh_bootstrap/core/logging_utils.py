from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

from .errors import MshError, Verbosity

PACKAGE_LOGGER = "msh_bootstrap"

COLOR_RESET = "\033[0m"
COLOR_CYAN = "\033[36m"

DEFAULT_DEBUG_LEVEL = Verbosity.E


class VerbosityFilter(logging.Filter):
    """Drop records whose ``verbosity`` is above the current debug level."""

    def __init__(self, debug_level: int = DEFAULT_DEBUG_LEVEL) -> None:
        super().__init__()
        self.debug_level = int(debug_level)

    def filter(self, record: logging.LogRecord) -> bool:
        verbosity = getattr(record, "verbosity", None)
        if verbosity is None:
            return True
        return int(verbosity) <= self.debug_level


_FILTER = VerbosityFilter()


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    verbosity: Optional[int] = None,
    exc: Optional[BaseException] = None,
    **fields: Any,
) -> None:
    payload: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        if value is not None:
            payload[key] = value
    if exc is not None:
        payload["error"] = str(exc)
        payload["error_type"] = type(exc).__name__
    extra = {"verbosity": int(verbosity)} if verbosity is not None else None
    logger.log(level, json.dumps(payload, default=_json_default), extra=extra)


def log_error(
    logger: logging.Logger,
    err: MshError,
    *,
    level: Optional[int] = None,
    **fields: Any,
) -> None:
    if level is None:
        level = logging.ERROR if err.fatal else logging.WARNING
    log_event(
        logger,
        level,
        f"error.{err.code.value}",
        verbosity=err.level,
        trace=" > ".join(err.trace) or None,
        message=err.message,
        **fields,
    )


def setup_logging(debug_level: int = DEFAULT_DEBUG_LEVEL) -> logging.Logger:
    """Attach a single stream handler with the verbosity filter to the package logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    existing = [h for h in logger.handlers if getattr(h, "_msh_handler", False)]
    if existing:
        for handler in existing:
            if isinstance(handler, logging.StreamHandler):
                handler.setStream(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        handler.addFilter(_FILTER)
        handler._msh_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    set_debug_level(debug_level)
    return logger


def set_debug_level(debug_level: int) -> None:
    _FILTER.debug_level = int(debug_level)


def get_debug_level() -> int:
    return _FILTER.debug_level


__all__ = [
    "COLOR_CYAN",
    "COLOR_RESET",
    "VerbosityFilter",
    "get_debug_level",
    "log_error",
    "log_event",
    "set_debug_level",
    "setup_logging",
]
