"""Tests for the telegrinder binding — transport calls, events, dispatch wiring."""

from __future__ import annotations

import asyncio
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from kungfu import Error, Nothing, Ok, Some
from telegrinder.bot.rules.command import Command

from teleroute.binding import TelegrinderTransport, attach, event_from_callback, event_from_message
from teleroute.registry import CommandEntry
from teleroute.router import InlineRouter
from teleroute.routes import ButtonAnswer, View, route
from teleroute.testing import RecordingTransport


def _api(**results: object) -> MagicMock:
    api = MagicMock()
    for name in (
        "send_message",
        "edit_message_text",
        "edit_message_reply_markup",
        "delete_message",
        "answer_callback_query",
        "set_my_commands",
    ):
        setattr(api, name, AsyncMock(return_value=results.get(name, Ok(True))))
    return api


def _message(text: str | None = "hi", *, chat_id: int = 10, user_id: int | None = 20) -> MagicMock:
    message = MagicMock()
    message.chat.id = chat_id
    message.from_user = Some(MagicMock(id=user_id)) if user_id is not None else Nothing()
    message.text = Some(text) if text is not None else Nothing()
    return message


def _callback(data: str | None = "menu!v1", *, message_id: int | None = 7) -> MagicMock:
    cb = MagicMock()
    cb.id = "q-1"
    cb.from_user.id = 20
    cb.message = Some(MagicMock(**{"v.chat.id": 10}))
    cb.message_id = Some(message_id) if message_id is not None else Nothing()
    cb.data = Some(data) if data is not None else Nothing()
    return cb


# ═══════════════════════════════════════════════════════════════════════════════
# TelegrinderTransport
# ═══════════════════════════════════════════════════════════════════════════════


class TestTelegrinderTransport:
    def test_send_returns_message_id(self) -> None:
        api = _api(send_message=Ok(MagicMock(message_id=42)))
        result = asyncio.run(TelegrinderTransport(api).send_message(1, "hello"))
        assert result == Ok(42)
        kwargs = api.send_message.call_args.kwargs
        assert kwargs["chat_id"] == 1
        assert kwargs["text"] == "hello"
        assert kwargs["link_preview_options"].is_disabled is True

    def test_send_error(self) -> None:
        api = _api(send_message=Error("Forbidden"))
        match asyncio.run(TelegrinderTransport(api).send_message(1, "hello")):
            case Error(err):
                assert err.operation == "send_message"
                assert err.detail == "Forbidden"
            case _:
                raise AssertionError("expected an error")

    def test_edit_error(self) -> None:
        api = _api(edit_message_text=Error("message is not modified"))
        result = asyncio.run(TelegrinderTransport(api).edit_message_text(1, 2, "x", disable_preview=False))
        assert isinstance(result, Error)
        assert api.edit_message_text.call_args.kwargs["link_preview_options"].is_disabled is False

    def test_clear_reply_markup_sends_empty_keyboard(self) -> None:
        api = _api()
        result = asyncio.run(TelegrinderTransport(api).clear_reply_markup(1, 2))
        assert result == Ok(None)
        assert api.edit_message_reply_markup.call_args.kwargs["reply_markup"].inline_keyboard == []

    def test_delete(self) -> None:
        api = _api()
        assert asyncio.run(TelegrinderTransport(api).delete_message(1, 2)) == Ok(None)
        api.delete_message.assert_awaited_once_with(chat_id=1, message_id=2)

    def test_plain_answer(self) -> None:
        api = _api()
        asyncio.run(TelegrinderTransport(api).answer_callback("q"))
        api.answer_callback_query.assert_awaited_once_with(callback_query_id="q")

    def test_answer_with_text(self) -> None:
        api = _api()
        asyncio.run(TelegrinderTransport(api).answer_callback("q", ButtonAnswer("Done", show_alert=True)))
        kwargs = api.answer_callback_query.call_args.kwargs
        assert kwargs["text"] == "Done"
        assert kwargs["show_alert"] is True

    def test_set_commands(self) -> None:
        api = _api()
        asyncio.run(TelegrinderTransport(api).set_commands([
            CommandEntry("/start", "Open menu"),
            CommandEntry("help"),
        ]))
        sent = api.set_my_commands.call_args.kwargs["commands"]
        assert [(c.command, c.description) for c in sent] == [("start", "Open menu"), ("help", "help")]


# ═══════════════════════════════════════════════════════════════════════════════
# Events
# ═══════════════════════════════════════════════════════════════════════════════


class TestEvents:
    def test_from_message(self) -> None:
        event = event_from_message(_message("hi"))
        assert (event.chat_id, event.user_id, event.text) == (10, 20, "hi")
        assert event.is_callback is False
        assert event.session_key == "10:20"

    def test_from_message_without_user(self) -> None:
        event = event_from_message(_message(None, user_id=None))
        assert event.user_id == 10
        assert event.text is None

    def test_from_callback(self) -> None:
        event = event_from_callback(_callback("menu!v1:3"))
        assert event.chat_id == 10
        assert event.user_id == 20
        assert event.message_id == 7
        assert event.callback_id == "q-1"
        assert event.data == "menu!v1:3"
        assert event.is_callback is True

    def test_from_callback_without_message(self) -> None:
        cb = _callback(None, message_id=None)
        cb.message = Nothing()
        event = event_from_callback(cb)
        assert event.chat_id == 20
        assert event.message_id is None
        assert event.data is None


# ═══════════════════════════════════════════════════════════════════════════════
# Dispatch wiring
# ═══════════════════════════════════════════════════════════════════════════════


class _Dispatch:
    """Records handlers registered through dispatch decorators."""

    def __init__(self) -> None:
        self.messages: list[tuple[tuple[Any, ...], Callable[..., Any]]] = []
        self.callbacks: list[Callable[..., Any]] = []

    def message(self, *rules: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        def register(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.messages.append((rules, fn))
            return fn

        return register

    def callback_query(self, *rules: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        def register(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.callbacks.append(fn)
            return fn

        return register


class TestAttach:
    def _setup(self) -> tuple[_Dispatch, RecordingTransport]:
        menu = route("menu", lambda args: View("Menu"), command="start")
        ask = route("ask", lambda args: None, on_text=lambda args: View(f"Got {args.text}"), command="ask")
        transport = RecordingTransport()
        running = InlineRouter([menu, ask]).run(transport, None)
        dispatch = _Dispatch()
        attach(running, dispatch)  # type: ignore[arg-type]
        return dispatch, transport

    def test_handlers_registered_in_order(self) -> None:
        dispatch, _ = self._setup()
        rules = [r for r, _ in dispatch.messages]
        assert len(rules) == 3
        assert all(isinstance(r[0], Command) for r in rules[:2])
        assert rules[2] == ()
        assert len(dispatch.callbacks) == 1

    def test_command_handler_navigates(self) -> None:
        dispatch, transport = self._setup()
        on_start = dispatch.messages[1][1]
        asyncio.run(on_start(_message("/start")))
        assert transport.last.text == "Menu"
        assert transport.last.chat_id == 10

    def test_callback_handler(self) -> None:
        dispatch, transport = self._setup()
        asyncio.run(dispatch.callbacks[0](_callback("menu!v1")))
        assert transport.methods(include_answers=True) == ["answer_callback", "edit_message_text"]

    def test_text_handler(self) -> None:
        dispatch, transport = self._setup()
        on_ask = dispatch.messages[0][1]
        on_text = dispatch.messages[2][1]

        async def run() -> None:
            await on_ask(_message("/ask"))
            await on_text(_message("blue"))
            await on_text(_message(None))

        asyncio.run(run())
        assert transport.last.text == "Got blue"

    def test_router_attach_delegates(self) -> None:
        running = InlineRouter([route("menu", lambda args: View("Menu"), command="start")]).run(
            RecordingTransport(),
            None,
        )
        dispatch = _Dispatch()
        running.attach(dispatch)  # type: ignore[arg-type]
        assert len(dispatch.messages) == 2
        assert len(dispatch.callbacks) == 1


# ═══════════════════════════════════════════════════════════════════════════════
# Packaging
# ═══════════════════════════════════════════════════════════════════════════════


class TestDependencies:
    def test_result_library_declared(self) -> None:
        pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
        deps = tomllib.loads(pyproject.read_text())["project"]["dependencies"]
        names = {re.split(r"[<>=!~\[; ]", d, maxsplit=1)[0] for d in deps}
        assert {"telegrinder", "kungfu-fp"} <= names
        assert "telegrinder>=1.0.0,<2" in deps
