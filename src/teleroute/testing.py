"""In-memory ChatTransport and event builders for tests.

    transport = RecordingTransport(fail={"edit_message_text"})
    running = router.run(transport, actions)
    await running.handle_callback(callback_event("r2!v1", message_id=100))
    assert transport.methods() == ["answer_callback", "edit_message_text", ...]
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from kungfu import Error, Ok, Result
from telegrinder.types.objects import InlineKeyboardMarkup

from teleroute.errors import TransportError
from teleroute.registry import CommandEntry
from teleroute.routes import ButtonAnswer
from teleroute.transport import Event


@dataclass(frozen=True, slots=True)
class Call:
    """One recorded transport call."""

    method: str
    chat_id: int | None = None
    message_id: int | None = None
    text: str | None = None
    markup: InlineKeyboardMarkup | None = None
    ok: bool = True
    extra: dict[str, object] = field(default_factory=lambda: dict[str, object]())

    @property
    def keyboard(self) -> list[list[str]]:
        """Button texts of ``markup``, row by row."""
        if self.markup is None:
            return []
        return [[btn.text for btn in line] for line in self.markup.inline_keyboard]


class RecordingTransport:
    """ChatTransport that records calls and hands out message ids.

    Methods named in ``fail`` return ``Error(TransportError)``.
    """

    def __init__(self, *, first_message_id: int = 100, fail: Iterable[str] = ()) -> None:
        self.calls: list[Call] = []
        self.fail: set[str] = set(fail)
        self._next_id = first_message_id

    def _record[T](self, value: T, method: str, **fields: object) -> Result[T, TransportError]:
        failed = method in self.fail
        self.calls.append(Call(method, ok=not failed, **fields))  # type: ignore[arg-type]
        if failed:
            return Error(TransportError(method, "simulated failure"))
        return Ok(value)

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_markup: InlineKeyboardMarkup | None = None,
        disable_preview: bool = True,
    ) -> Result[int, TransportError]:
        message_id = None
        if "send_message" not in self.fail:
            message_id = self._next_id
            self._next_id += 1
        return self._record(
            message_id or 0,
            "send_message",
            chat_id=chat_id,
            message_id=message_id,
            text=text,
            markup=reply_markup,
            extra={"disable_preview": disable_preview},
        )

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        *,
        reply_markup: InlineKeyboardMarkup | None = None,
        disable_preview: bool = True,
    ) -> Result[None, TransportError]:
        return self._record(
            None,
            "edit_message_text",
            chat_id=chat_id,
            message_id=message_id,
            text=text,
            markup=reply_markup,
            extra={"disable_preview": disable_preview},
        )

    async def clear_reply_markup(self, chat_id: int, message_id: int) -> Result[None, TransportError]:
        return self._record(None, "clear_reply_markup", chat_id=chat_id, message_id=message_id)

    async def delete_message(self, chat_id: int, message_id: int) -> Result[None, TransportError]:
        return self._record(None, "delete_message", chat_id=chat_id, message_id=message_id)

    async def answer_callback(
        self,
        callback_id: str,
        answer: ButtonAnswer | None = None,
    ) -> Result[None, TransportError]:
        return self._record(
            None,
            "answer_callback",
            extra={"callback_id": callback_id, "answer": answer},
        )

    async def set_commands(self, commands: Sequence[CommandEntry]) -> Result[None, TransportError]:
        return self._record(
            None,
            "set_commands",
            extra={"commands": [c.command for c in commands]},
        )

    # ── inspection ────────────────────────────────────────────────────────

    def methods(self, *, include_answers: bool = False) -> list[str]:
        return [
            c.method for c in self.calls
            if include_answers or c.method != "answer_callback"
        ]

    def of(self, method: str) -> list[Call]:
        return [c for c in self.calls if c.method == method]

    @property
    def last(self) -> Call:
        return self.calls[-1]

    def reset(self) -> None:
        self.calls.clear()


def command_event(chat_id: int = 1, user_id: int = 1, text: str = "") -> Event:
    return Event(chat_id=chat_id, user_id=user_id, text=text or None)


def callback_event(
    data: str,
    message_id: int | None = None,
    *,
    chat_id: int = 1,
    user_id: int = 1,
    callback_id: str = "cb-1",
) -> Event:
    return Event(
        chat_id=chat_id,
        user_id=user_id,
        message_id=message_id,
        callback_id=callback_id,
        data=data,
    )


def text_event(text: str, *, chat_id: int = 1, user_id: int = 1) -> Event:
    return Event(chat_id=chat_id, user_id=user_id, text=text)


__all__ = (
    "Call",
    "RecordingTransport",
    "callback_event",
    "command_event",
    "text_event",
)
