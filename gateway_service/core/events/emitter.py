"""In-process asynchronous event emitter.

Listeners are awaited one after another in subscription order, so an
emitter call only returns once every listener has finished. The extension
registry relies on this to keep registration strictly sequential.

Usage:
    from gateway_service.core.events import AsyncEventEmitter, GatewayEvent

    emitter = AsyncEventEmitter()

    @emitter.on(GatewayEvent.EXTENSION_REGISTERED)
    async def audit(event: ExtensionRegistered) -> None:
        ...

    await emitter.emit_async(GatewayEvent.EXTENSION_REGISTERED, event)
"""

from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from enum import StrEnum
import inspect
import logging
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class GatewayEvent(StrEnum):
    """Lifecycle events emitted by the gateway."""

    EXTENSION_REGISTERED = "extension.registered"


class AsyncEventEmitter:
    """Event emitter whose listeners may be sync or async callables."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener | None = None) -> Any:
        """Subscribe a listener to an event.

        Can be used as a decorator or direct method call.

        Args:
            event: Event name
            listener: Callable receiving the event payload

        Returns:
            The listener (unchanged), or a decorator when called without one
        """

        def _subscribe(func: Listener) -> Listener:
            self._listeners.setdefault(str(event), []).append(func)
            return func

        if listener is None:
            return _subscribe
        return _subscribe(listener)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a previously subscribed listener (no-op when unknown)."""
        listeners = self._listeners.get(str(event), [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, event: str) -> list[Listener]:
        """Return a copy of the listeners subscribed to ``event``."""
        return list(self._listeners.get(str(event), []))

    async def emit_async(self, event: str, payload: Any = None) -> int:
        """Deliver ``payload`` to every listener, awaiting each in turn.

        Listener exceptions propagate to the caller; later listeners are not
        invoked once one has failed.

        Returns:
            Number of listeners invoked
        """
        listeners = self.listeners(event)
        for listener in listeners:
            result = listener(payload)
            if inspect.isawaitable(result):
                await result

        logger.debug(
            "Emitted event",
            extra={"event": str(event), "listeners": len(listeners)},
        )
        return len(listeners)
