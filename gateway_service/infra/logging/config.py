"""Logging configuration setup.

Provides logging configuration using:
- dictConfig for formatters and filters
- QueueHandler + QueueListener for non-blocking I/O
- ContextInjectingFilter for automatic context propagation
- All handlers on root logger (child loggers propagate)
- JSONL format for machine parsing
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from gateway_service.infra.logging.context import ContextInjectingFilter
from gateway_service.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from gateway_service.core.settings.logs import LoggingSettings

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False
_ATEXIT_REGISTERED = False

_TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records.

    Registered with atexit when logging is configured.
    """
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        # stop() processes everything already queued
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from gateway_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = {**settings_obj.to_logging_kwargs(), **configure_kwargs}

    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "gateway-service",
    **kwargs: Any,
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL (JSON Lines) structured logging.
        console_enabled: Enable console/stderr logging.
        include_context: Enable ContextInjectingFilter for auto context.
        capture_warnings: Forward Python warnings to logging system.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        service_name: Static ``service`` field of JSON records.
        **kwargs: Unused settings, reported at DEBUG.

    Example:
        configure_logging(log_level="DEBUG", json_logs=False)
    """
    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs)))

    if capture_warnings:
        logging.captureWarnings(True)

    # Reconfiguring replaces the previous listener
    shutdown()

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        # Handlers are attached to the QueueListener, not to root
        "root": {
            "level": log_level.upper(),
            "handlers": [],
        },
    }
    logging.config.dictConfig(logging_config)

    _setup_queue_logging(
        console_enabled=console_enabled,
        file_path=path,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
        json_logs=json_logs,
        service_name=service_name,
        include_context=include_context,
    )


def _build_formatter(json_logs: bool, service_name: str) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(
            fmt_keys={"level": "levelname", "logger": "name", "message": "message"},
            static={"service": service_name},
        )
    return logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)


def _setup_queue_logging(
    console_enabled: bool,
    file_path: Path | None,
    file_max_bytes: int,
    file_backup_count: int,
    json_logs: bool,
    service_name: str,
    include_context: bool,
) -> None:
    """Attach real handlers to a QueueListener and a QueueHandler to root.

    Nothing is attached when neither console nor file output is enabled.

    The context filter sits on the QueueHandler so records propagated from
    child loggers are enriched too.
    """
    global _log_queue, _listener, _queue_handler, _ATEXIT_REGISTERED

    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(_build_formatter(json_logs, service_name))
        handlers.append(console_handler)

    if file_path:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(_build_formatter(json_logs, service_name))
        handlers.append(file_handler)

    if not handlers:
        # keeps logging.lastResort from writing to stderr
        logging.getLogger().addHandler(logging.NullHandler())
        return

    _log_queue = Queue()
    _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
    _listener.start()
    if not _ATEXIT_REGISTERED:
        atexit.register(shutdown)
        _ATEXIT_REGISTERED = True

    _queue_handler = QueueHandler(_log_queue)
    if include_context:
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)
