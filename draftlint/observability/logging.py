"""Centralised logging helpers for draftlint."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

_LOGGER_CACHE: Dict[str, logging.Logger] = {}

_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_logger(name: str = "draftlint") -> logging.Logger:
    """Return a cached :class:`logging.Logger` instance."""

    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = logging.getLogger(name)
    return _LOGGER_CACHE[name]


def configure_cli_logging(level: Optional[str] = None) -> int:
    """Attach a stderr handler to the ``draftlint`` logger and set its level.

    The level comes from ``level``, then ``DRAFTLINT_LOG_LEVEL``, then ``warning``.
    Returns the numeric level applied.
    """

    log_level = (level or os.getenv("DRAFTLINT_LOG_LEVEL", "warning")).lower()
    numeric_level = _LEVEL_MAP.get(log_level, logging.WARNING)

    root_logger = get_logger("draftlint")
    root_logger.setLevel(numeric_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
        root_logger.propagate = False
    return numeric_level


def log_link_retry(
    *,
    url: str,
    attempt: int,
    delay: float,
    reason: Optional[str],
    logger: Optional[logging.Logger] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> None:
    """Emit a structured retry log entry for external link probes."""

    payload: Dict[str, Any] = {
        "url": url,
        "attempt": attempt,
        "next_delay": round(delay, 3),
    }
    if reason:
        payload["reason"] = reason
    if extras:
        payload.update(extras)
    target_logger = logger or get_logger("draftlint.links.retry")
    target_logger.warning(
        "Retrying link probe",
        extra={"draftlint_event": "link_retry", "draftlint_data": payload},
    )
