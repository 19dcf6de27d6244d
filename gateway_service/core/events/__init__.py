"""Lifecycle events for the extension registry."""

from gateway_service.core.events.emitter import AsyncEventEmitter, GatewayEvent, Listener

__all__ = [
    "AsyncEventEmitter",
    "GatewayEvent",
    "Listener",
]
