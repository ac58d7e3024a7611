"""Per-key FIFO serialization of async work.

    serializer = KeyedSerializer()
    await serializer.run_exclusive("42:7", handle_press)

Calls sharing a key run one at a time in the order they were issued.
Calls with different keys never wait on each other.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable


class KeyedSerializer:
    """Chains each call behind the tail signal of its key.

    A finished call removes its key when it is still the tail, so idle
    sessions leave nothing behind. A call cancelled while queued hands
    its turn on only after its predecessor has finished.
    """

    def __init__(self) -> None:
        self._tails: dict[Hashable, asyncio.Event] = {}
        self._handoffs: set[asyncio.Task[None]] = set()

    async def run_exclusive[T](
        self,
        key: Hashable,
        fn: Callable[[], Awaitable[T]],
    ) -> T:
        previous = self._tails.get(key)
        current = asyncio.Event()
        self._tails[key] = current
        try:
            if previous is not None:
                await previous.wait()
            return await fn()
        finally:
            if previous is None or previous.is_set():
                self._release(key, current)
            else:
                task = asyncio.ensure_future(self._release_after(previous, key, current))
                self._handoffs.add(task)
                task.add_done_callback(self._handoffs.discard)

    async def _release_after(self, previous: asyncio.Event, key: Hashable, current: asyncio.Event) -> None:
        await previous.wait()
        self._release(key, current)

    def _release(self, key: Hashable, current: asyncio.Event) -> None:
        current.set()
        if self._tails.get(key) is current:
            del self._tails[key]

    def __contains__(self, key: object) -> bool:
        return key in self._tails

    def __len__(self) -> int:
        return len(self._tails)


__all__ = ("KeyedSerializer",)
