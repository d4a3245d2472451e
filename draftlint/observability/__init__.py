"""Observability helpers (logging) for draftlint."""

from .logging import configure_cli_logging, get_logger, log_link_retry

__all__ = ["configure_cli_logging", "get_logger", "log_link_retry"]
