"""Logging infrastructure.

Provides structured logging with:
- JSONL format for log aggregation
- Automatic context injection (extension name, request id, ...)
- QueueHandler + QueueListener for non-blocking I/O
- OpenTelemetry trace correlation

Basic usage:
    from gateway_service.infra.logging import log_context
    import logging

    logger = logging.getLogger(__name__)

    with log_context(extension="blog"):
        logger.info("Registering")  # Automatically includes extension="blog"
"""

from gateway_service.infra.logging.config import configure_logging, setup_logging, shutdown
from gateway_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    log_context,
    remove_from_log_context,
    set_log_context,
)
from gateway_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "log_context",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
