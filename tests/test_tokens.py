"""Tests for teleroute.tokens and teleroute.state stores."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from kungfu import Nothing, Some

from teleroute.state import InMemoryStateStore, RenderedMessage, RouterState
from teleroute.tokens import InMemoryTokenStore


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


# ═══════════════════════════════════════════════════════════════════════════════
# InMemoryTokenStore
# ═══════════════════════════════════════════════════════════════════════════════


class TestInMemoryTokenStore:
    def test_token_shape(self) -> None:
        store = InMemoryTokenStore()
        token = asyncio.run(store.save("payload"))
        assert len(token) == 10
        int(token, 16)

    def test_save_load(self) -> None:
        store = InMemoryTokenStore()

        async def run() -> None:
            token = await store.save({"a": 1})
            assert await store.load(token) == Some({"a": 1})

        asyncio.run(run())

    def test_missing(self) -> None:
        store = InMemoryTokenStore()
        assert asyncio.run(store.load("nope")) == Nothing()

    def test_expired_is_evicted_on_read(self) -> None:
        clock = _Clock()
        store = InMemoryTokenStore(clock=clock)

        async def run() -> None:
            token = await store.save("x", timedelta(seconds=60))
            clock.now += 59
            assert await store.load(token) == Some("x")
            clock.now += 2
            assert await store.load(token) == Nothing()
            assert len(store) == 0

        asyncio.run(run())

    def test_no_ttl_never_expires(self) -> None:
        clock = _Clock()
        store = InMemoryTokenStore(clock=clock)

        async def run() -> None:
            token = await store.save("x")
            clock.now += 10**9
            assert await store.load(token) == Some("x")

        asyncio.run(run())

    def test_delete(self) -> None:
        store = InMemoryTokenStore()

        async def run() -> None:
            token = await store.save("x")
            await store.delete(token)
            await store.delete(token)
            assert await store.load(token) == Nothing()

        asyncio.run(run())


# ═══════════════════════════════════════════════════════════════════════════════
# InMemoryStateStore / RouterState
# ═══════════════════════════════════════════════════════════════════════════════


class TestInMemoryStateStore:
    def test_keyed_by_chat_and_user(self) -> None:
        store = InMemoryStateStore()

        async def run() -> None:
            a = RouterState(stack=["a"])
            b = RouterState(stack=["b"])
            await store.set(1, 1, a)
            await store.set(1, 2, b)
            assert await store.get(1, 1) is a
            assert await store.get(1, 2) is b
            assert await store.get(2, 1) is None
            await store.delete(1, 1)
            assert await store.get(1, 1) is None

        asyncio.run(run())


def _record(message_id: int, text: str = "t") -> RenderedMessage:
    return RenderedMessage(message_id=message_id, text=text, buttons=(), show_back=False, show_cancel=False)


class TestRouterState:
    def test_defaults(self) -> None:
        state = RouterState()
        assert state.stack == []
        assert state.params == {}
        assert state.awaiting_text_route_id is None
        assert state.messages == []
        assert state.top_route_id is None

    def test_remember_replaces_same_id(self) -> None:
        state = RouterState()
        state.remember(_record(1, "a"))
        state.remember(_record(2, "b"))
        state.remember(_record(1, "c"))
        assert [(m.message_id, m.text) for m in state.messages] == [(1, "c"), (2, "b")]

    def test_take_overflow_drops_oldest(self) -> None:
        state = RouterState()
        for i in range(5):
            state.remember(_record(i))
        dropped = state.take_overflow(3)
        assert [m.message_id for m in dropped] == [0, 1]
        assert [m.message_id for m in state.messages] == [2, 3, 4]

    def test_forget(self) -> None:
        state = RouterState()
        state.remember(_record(1))
        state.forget(1)
        assert state.find_message(1) is None
