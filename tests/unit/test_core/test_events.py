"""Unit tests for the async event emitter."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from gateway_service.core.events import AsyncEventEmitter, GatewayEvent


# ──────────────────────────────────────────────────────────────
# Subscription
# ──────────────────────────────────────────────────────────────


class TestSubscription:
    """Tests for on/off/listeners."""

    def test_on_as_decorator_returns_listener(self):
        emitter = AsyncEventEmitter()

        @emitter.on(GatewayEvent.EXTENSION_REGISTERED)
        def listener(payload):
            return None

        assert emitter.listeners(GatewayEvent.EXTENSION_REGISTERED) == [listener]

    def test_enum_and_string_names_are_the_same_event(self):
        emitter = AsyncEventEmitter()
        listener = MagicMock()

        emitter.on("extension.registered", listener)

        assert emitter.listeners(GatewayEvent.EXTENSION_REGISTERED) == [listener]

    def test_off_removes_listener(self):
        emitter = AsyncEventEmitter()
        listener = MagicMock()
        emitter.on("evt", listener)

        emitter.off("evt", listener)
        emitter.off("evt", listener)

        assert emitter.listeners("evt") == []

    def test_listeners_returns_copy(self):
        emitter = AsyncEventEmitter()
        emitter.on("evt", MagicMock())

        emitter.listeners("evt").clear()

        assert len(emitter.listeners("evt")) == 1


# ──────────────────────────────────────────────────────────────
# Emission
# ──────────────────────────────────────────────────────────────


class TestEmitAsync:
    """Tests for emit_async."""

    @pytest.mark.asyncio
    async def test_sync_and_async_listeners_receive_payload(self):
        emitter = AsyncEventEmitter()
        sync_listener = MagicMock()
        async_listener = AsyncMock()
        emitter.on("evt", sync_listener)
        emitter.on("evt", async_listener)

        count = await emitter.emit_async("evt", {"name": "blog"})

        assert count == 2
        sync_listener.assert_called_once_with({"name": "blog"})
        async_listener.assert_awaited_once_with({"name": "blog"})

    @pytest.mark.asyncio
    async def test_listeners_are_awaited_in_order(self):
        emitter = AsyncEventEmitter()
        order = []

        async def slow(payload):
            await asyncio.sleep(0.01)
            order.append("slow")

        async def fast(payload):
            order.append("fast")

        emitter.on("evt", slow)
        emitter.on("evt", fast)

        await emitter.emit_async("evt")

        assert order == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_listener_error_propagates(self):
        emitter = AsyncEventEmitter()
        later = AsyncMock()
        emitter.on("evt", AsyncMock(side_effect=RuntimeError("listener failed")))
        emitter.on("evt", later)

        with pytest.raises(RuntimeError, match="listener failed"):
            await emitter.emit_async("evt")

        later.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_listeners(self):
        assert await AsyncEventEmitter().emit_async("evt") == 0
