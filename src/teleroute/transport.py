"""Chat transport interface and the transport-neutral incoming event.

The router never talks to Telegram directly. It calls a ChatTransport
whose methods return kungfu ``Result``; ``Error`` carries a
TransportError. teleroute.binding implements it over telegrinder's API,
teleroute.testing records calls in memory.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from kungfu import Result

from teleroute.errors import TransportError

if TYPE_CHECKING:
    from telegrinder.types.objects import InlineKeyboardMarkup

    from teleroute.registry import CommandEntry
    from teleroute.routes import ButtonAnswer


@dataclass(frozen=True, slots=True)
class Event:
    """Incoming button press or text message.

    ``message_id`` is the bot message a pressed button belongs to.
    ``raw`` is the transport's own update object, passed through untouched.
    """

    chat_id: int
    user_id: int
    message_id: int | None = None
    callback_id: str | None = None
    data: str | None = None
    text: str | None = None
    raw: object = field(default=None, compare=False, repr=False)

    @property
    def session_key(self) -> str:
        return f"{self.chat_id}:{self.user_id}"

    @property
    def is_callback(self) -> bool:
        return self.callback_id is not None


class ChatTransport(Protocol):
    """Outgoing side of the chat."""

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_markup: InlineKeyboardMarkup | None = None,
        disable_preview: bool = True,
    ) -> Result[int, TransportError]:
        """Send a message, return its id."""
        ...

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        *,
        reply_markup: InlineKeyboardMarkup | None = None,
        disable_preview: bool = True,
    ) -> Result[None, TransportError]: ...

    async def clear_reply_markup(
        self,
        chat_id: int,
        message_id: int,
    ) -> Result[None, TransportError]: ...

    async def delete_message(
        self,
        chat_id: int,
        message_id: int,
    ) -> Result[None, TransportError]: ...

    async def answer_callback(
        self,
        callback_id: str,
        answer: ButtonAnswer | None = None,
    ) -> Result[None, TransportError]: ...

    async def set_commands(
        self,
        commands: Sequence[CommandEntry],
    ) -> Result[None, TransportError]: ...


__all__ = (
    "ChatTransport",
    "Event",
)
