"""telegrinder binding: ChatTransport over API and Dispatch handlers.

    from telegrinder import API, Telegrinder, Token

    api = API(Token.from_env())
    bot = Telegrinder(api)
    running = router.run(TelegrinderTransport(api), actions)
    running.attach(bot.dispatch)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from kungfu import Error, Ok, Result, Some
from telegrinder.bot.cute_types.callback_query import CallbackQueryCute
from telegrinder.bot.cute_types.message import MessageCute
from telegrinder.bot.rules.command import Command
from telegrinder.types.objects import BotCommand, InlineKeyboardMarkup, LinkPreviewOptions

from teleroute.errors import TransportError
from teleroute.registry import CommandEntry
from teleroute.routes import ButtonAnswer
from teleroute.transport import Event

if TYPE_CHECKING:
    from telegrinder.api import API
    from telegrinder.bot.dispatch import Dispatch

    from teleroute.router import RunningRouter


def _done(result: Result[object, object], operation: str) -> Result[None, TransportError]:
    match result:
        case Ok(_):
            return Ok(None)
        case Error(err):
            return Error(TransportError(operation, err))
    return Error(TransportError(operation))


# ═══════════════════════════════════════════════════════════════════════════════
# Transport
# ═══════════════════════════════════════════════════════════════════════════════


class TelegrinderTransport:
    """ChatTransport backed by a telegrinder API client."""

    def __init__(self, api: API) -> None:
        self.api = api

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_markup: InlineKeyboardMarkup | None = None,
        disable_preview: bool = True,
    ) -> Result[int, TransportError]:
        result = await self.api.send_message(
            chat_id=chat_id,
            text=text,
            reply_markup=reply_markup,
            link_preview_options=LinkPreviewOptions(is_disabled=disable_preview),
        )
        match result:
            case Ok(sent):
                return Ok(sent.message_id)
            case Error(err):
                return Error(TransportError("send_message", err))
        return Error(TransportError("send_message"))

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        *,
        reply_markup: InlineKeyboardMarkup | None = None,
        disable_preview: bool = True,
    ) -> Result[None, TransportError]:
        result = await self.api.edit_message_text(
            chat_id=chat_id,
            message_id=message_id,
            text=text,
            reply_markup=reply_markup,
            link_preview_options=LinkPreviewOptions(is_disabled=disable_preview),
        )
        return _done(result, "edit_message_text")

    async def clear_reply_markup(
        self,
        chat_id: int,
        message_id: int,
    ) -> Result[None, TransportError]:
        result = await self.api.edit_message_reply_markup(
            chat_id=chat_id,
            message_id=message_id,
            reply_markup=InlineKeyboardMarkup(inline_keyboard=[]),
        )
        return _done(result, "edit_message_reply_markup")

    async def delete_message(
        self,
        chat_id: int,
        message_id: int,
    ) -> Result[None, TransportError]:
        result = await self.api.delete_message(chat_id=chat_id, message_id=message_id)
        return _done(result, "delete_message")

    async def answer_callback(
        self,
        callback_id: str,
        answer: ButtonAnswer | None = None,
    ) -> Result[None, TransportError]:
        if answer is None:
            result = await self.api.answer_callback_query(callback_query_id=callback_id)
        else:
            result = await self.api.answer_callback_query(
                callback_query_id=callback_id,
                text=answer.text,
                show_alert=answer.show_alert,
                url=answer.url,
                cache_time=answer.cache_time,
            )
        return _done(result, "answer_callback_query")

    async def set_commands(
        self,
        commands: Sequence[CommandEntry],
    ) -> Result[None, TransportError]:
        result = await self.api.set_my_commands(
            commands=[
                BotCommand(
                    command=c.command.lstrip("/"),
                    description=c.description or c.command.lstrip("/"),
                )
                for c in commands
            ],
        )
        return _done(result, "set_my_commands")


# ═══════════════════════════════════════════════════════════════════════════════
# Events
# ═══════════════════════════════════════════════════════════════════════════════


def event_from_message(message: MessageCute) -> Event:
    """User ID when available, fallback to chat ID."""
    match message.from_user:
        case Some(user):
            user_id = user.id
        case _:
            user_id = message.chat.id
    match message.text:
        case Some(text):
            body: str | None = text
        case _:
            body = None
    return Event(
        chat_id=message.chat.id,
        user_id=user_id,
        text=body,
        raw=message,
    )


def event_from_callback(cb: CallbackQueryCute) -> Event:
    """Chat of the message the button is on; private chat of the user otherwise."""
    match cb.message:
        case Some(msg):
            chat_id = msg.v.chat.id
        case _:
            chat_id = cb.from_user.id
    match cb.message_id:
        case Some(mid):
            message_id: int | None = mid
        case _:
            message_id = None
    match cb.data:
        case Some(data):
            raw_data: str | None = data
        case _:
            raw_data = None
    return Event(
        chat_id=chat_id,
        user_id=cb.from_user.id,
        message_id=message_id,
        callback_id=cb.id,
        data=raw_data,
        raw=cb,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════════════════


def attach(running: RunningRouter[object], dispatch: Dispatch) -> None:
    """Register handlers on ``dispatch``.

    Command handlers first, one per route command, then one callback
    query handler, then a catch-all text handler.
    """
    for entry in running.registry.commands:
        _register_command(running, dispatch, entry.command)

    @dispatch.callback_query()
    async def on_callback(cb: CallbackQueryCute) -> None:
        await running.handle_callback(event_from_callback(cb))

    @dispatch.message()
    async def on_text(message: MessageCute) -> None:
        event = event_from_message(message)
        if event.text is None:
            return
        await running.handle_text(event)


def _register_command(running: RunningRouter[object], dispatch: Dispatch, command: str) -> None:
    @dispatch.message(Command(command))
    async def on_command(message: MessageCute) -> None:
        await running.handle_command(event_from_message(message), command)


__all__ = (
    "TelegrinderTransport",
    "attach",
    "event_from_callback",
    "event_from_message",
)
