"""Per-(chat, user) session state and its store."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from teleroute.routes import Button
    from teleroute.transport import Event


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    """What was last shown in one bot message."""

    message_id: int
    text: str
    buttons: tuple[tuple[Button, ...], ...]
    show_back: bool
    show_cancel: bool


@dataclass(slots=True)
class RouterState:
    """Navigation state of one session.

    ``stack`` holds route ids, top last. ``params`` keeps the parameters
    each route was last navigated with; they survive pops.
    ``messages`` is bounded by RouterOptions.max_messages, oldest first.
    """

    stack: list[str] = field(default_factory=lambda: list[str]())
    params: dict[str, object] = field(default_factory=lambda: dict[str, object]())
    awaiting_text_route_id: str | None = None
    messages: list[RenderedMessage] = field(default_factory=lambda: list[RenderedMessage]())

    @property
    def top_route_id(self) -> str | None:
        return self.stack[-1] if self.stack else None

    @property
    def last_message(self) -> RenderedMessage | None:
        return self.messages[-1] if self.messages else None

    def find_message(self, message_id: int) -> RenderedMessage | None:
        return next((m for m in self.messages if m.message_id == message_id), None)

    def remember(self, record: RenderedMessage) -> None:
        """Replace the record with the same message id, or append."""
        for idx, existing in enumerate(self.messages):
            if existing.message_id == record.message_id:
                self.messages[idx] = record
                return
        self.messages.append(record)

    def forget(self, message_id: int) -> None:
        self.messages = [m for m in self.messages if m.message_id != message_id]

    def take_overflow(self, limit: int) -> Sequence[RenderedMessage]:
        """Drop and return the oldest records beyond ``limit``."""
        overflow = max(0, len(self.messages) - limit)
        dropped = self.messages[:overflow]
        self.messages = self.messages[overflow:]
        return dropped


class StateStore(Protocol):
    """Session persistence. Only accessed under the session's lock."""

    async def get(self, chat_id: int, user_id: int) -> RouterState | None: ...

    async def set(self, chat_id: int, user_id: int, state: RouterState) -> None: ...

    async def delete(self, chat_id: int, user_id: int) -> None: ...


@dataclass(slots=True)
class Session:
    """State of one (chat, user) bound to the event being handled.

    Loaded once per event while the session lock is held; every
    navigation step of that event mutates the same RouterState.
    """

    event: Event
    state: RouterState
    store: StateStore

    @classmethod
    async def load(cls, event: Event, store: StateStore) -> Session:
        state = await store.get(event.chat_id, event.user_id)
        if state is None:
            state = RouterState()
            await store.set(event.chat_id, event.user_id, state)
        return cls(event=event, state=state, store=store)

    async def save(self) -> None:
        await self.store.set(self.event.chat_id, self.event.user_id, self.state)


class InMemoryStateStore:
    """Process-local StateStore. Keeps sessions until deleted."""

    def __init__(self) -> None:
        self._states: dict[tuple[int, int], RouterState] = {}

    async def get(self, chat_id: int, user_id: int) -> RouterState | None:
        return self._states.get((chat_id, user_id))

    async def set(self, chat_id: int, user_id: int, state: RouterState) -> None:
        self._states[(chat_id, user_id)] = state

    async def delete(self, chat_id: int, user_id: int) -> None:
        self._states.pop((chat_id, user_id), None)

    def __len__(self) -> int:
        return len(self._states)


__all__ = (
    "InMemoryStateStore",
    "RenderedMessage",
    "RouterState",
    "Session",
    "StateStore",
)
