"""Context management for structured logging.

Provides automatic context injection into log records using contextvars,
so the extension currently being registered (or the request being served)
is attached to every log line without explicit passing.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

# Each async task gets its own copy automatically
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Set logging context for current async task/thread.

    Args:
        **kwargs: Key-value pairs to add to logging context.

    Example:
        ```python
        set_log_context(extension="blog")
        logger.info("Loading schema")  # Includes extension="blog"
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for current async task/thread."""
    _log_context.set({})


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind context for the duration of a ``with`` block.

    Example:
        ```python
        with log_context(extension="blog"):
            await load(...)
        ```
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that injects the contextvar log context into LogRecord.

    Attached to the root QueueHandler so records from every logger get it.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = _log_context.get()

        for key, value in context.items():
            # Don't overwrite existing attributes
            if not hasattr(record, key):
                setattr(record, key, value)

        return True
