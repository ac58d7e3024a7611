"""Tests for InlineRouter / RunningRouter — commands, fallbacks, locking."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from teleroute.config import RouterOptions
from teleroute.registry import CommandCollision, CommandEntry, DuplicateRouteError
from teleroute.router import InlineRouter
from teleroute.routes import RenderMode, RouteArgs, View, route
from teleroute.testing import RecordingTransport, callback_event, command_event, text_event
from teleroute.transport import Event


class TestInlineRouter:
    def test_bad_tree_fails_on_construction(self) -> None:
        with pytest.raises(DuplicateRouteError):
            InlineRouter([route("a", lambda args: View("A")), route("a", lambda args: View("B"))])
        with pytest.raises(CommandCollision):
            InlineRouter([
                route("a", lambda args: View("A"), command="go"),
                route("b", lambda args: View("B"), command="go"),
            ])

    def test_system_callback_id_rejected(self) -> None:
        with pytest.raises(DuplicateRouteError, match="system callback"):
            InlineRouter([route("__router_back__", lambda args: View("A"))])

    def test_default_options(self) -> None:
        router = InlineRouter([route("a", lambda args: View("A"))])
        assert router.options.render_mode is RenderMode.SMART
        assert router.options.max_messages == 10

    def test_options_validated(self) -> None:
        with pytest.raises(ValueError):
            RouterOptions(max_messages=0)
        with pytest.raises(ValueError):
            RouterOptions(cb_version="v:1")

    def test_cancel_commands(self) -> None:
        options = RouterOptions()
        assert options.is_cancel_command("Cancel")
        assert options.is_cancel_command(" /CANCEL ")
        assert not options.is_cancel_command("cancel me")


class TestCommands:
    def test_unknown_command_not_handled(self) -> None:
        transport = RecordingTransport()
        running = InlineRouter([route("a", lambda args: View("A"), command="a")]).run(transport, None)
        assert asyncio.run(running.handle_command(command_event(), "zzz")) is False
        assert transport.calls == []

    def test_known_command_handled(self) -> None:
        transport = RecordingTransport()
        running = InlineRouter([route("a", lambda args: View("A"), command="a")]).run(transport, None)
        assert asyncio.run(running.handle_command(command_event(), "/a")) is True
        assert transport.last.text == "A"

    def test_commands_merge_first_wins(self) -> None:
        extra = (CommandEntry("help", "Help"), CommandEntry("/start", "Custom start"))
        router = InlineRouter(
            [
                route("menu", lambda args: View("M"), command="start", description="Menu", order=1),
                route("faq", lambda args: View("F"), command="faq", order=2),
            ],
            RouterOptions(commands=extra),
        )
        running = router.run(RecordingTransport(), None)
        assert [(c.command, c.description) for c in running.commands] == [
            ("help", "Help"),
            ("/start", "Custom start"),
            ("faq", None),
        ]

    def test_register_commands(self) -> None:
        transport = RecordingTransport()
        running = InlineRouter([route("menu", lambda args: View("M"), command="start")]).run(transport, None)
        assert asyncio.run(running.register_commands()) is True
        assert transport.last.method == "set_commands"
        assert transport.last.extra == {"commands": ["start"]}

    def test_register_commands_failure_reported(self) -> None:
        transport = RecordingTransport(fail={"set_commands"})
        running = InlineRouter([route("menu", lambda args: View("M"), command="start")]).run(transport, None)
        assert asyncio.run(running.register_commands()) is False

    def test_no_commands_skips_call(self) -> None:
        transport = RecordingTransport()
        running = InlineRouter([route("menu", lambda args: View("M"))]).run(transport, None)
        assert asyncio.run(running.register_commands()) is True
        assert transport.calls == []


class TestTextFallbacks:
    def test_unclaimed_text_goes_to_fallbacks(self) -> None:
        seen: list[str | None] = []

        async def async_fallback(event: Event) -> None:
            seen.append(f"async:{event.text}")

        running = InlineRouter([route("a", lambda args: View("A"))]).run(RecordingTransport(), None)
        running.on_text(lambda event: seen.append(event.text))
        running.on_text(async_fallback)

        assert asyncio.run(running.handle_text(text_event("hello"))) is False
        assert seen == ["hello", "async:hello"]

    def test_unsubscribe(self) -> None:
        seen: list[str | None] = []
        running = InlineRouter([route("a", lambda args: View("A"))]).run(RecordingTransport(), None)
        unsubscribe = running.on_text(lambda event: seen.append(event.text))
        unsubscribe()
        unsubscribe()

        asyncio.run(running.handle_text(text_event("hello")))
        assert seen == []

    def test_claimed_text_skips_fallbacks(self) -> None:
        seen: list[str | None] = []
        ask = route("ask", lambda args: None, on_text=lambda args: View("ok"))
        running = InlineRouter([ask]).run(RecordingTransport(), None)
        running.on_text(lambda event: seen.append(event.text))

        async def run() -> bool:
            await running.navigate(command_event(), ask)
            return await running.handle_text(text_event("answer"))

        assert asyncio.run(run()) is True
        assert seen == []

    def test_fallback_may_navigate(self) -> None:
        menu = route("menu", lambda args: View("Menu"))
        transport = RecordingTransport()
        running = InlineRouter([menu]).run(transport, None)

        async def fallback(event: Event) -> None:
            await running.navigate(event, menu)

        running.on_text(fallback)
        asyncio.run(running.handle_text(text_event("anything")))
        assert transport.last.text == "Menu"


class TestSessionSerialization:
    def test_events_of_one_session_run_in_order(self) -> None:
        log: list[str] = []

        async def slow(args: RouteArgs[None, Any]) -> View:
            log.append("slow:start")
            await asyncio.sleep(0.02)
            log.append("slow:end")
            return View("Slow")

        def fast(args: RouteArgs[None, Any]) -> View:
            log.append("fast")
            return View("Fast")

        running = InlineRouter([route("slow", slow), route("fast", fast)]).run(RecordingTransport(), None)

        async def run() -> None:
            await asyncio.gather(
                running.handle_callback(callback_event("slow!v1", message_id=1)),
                running.handle_callback(callback_event("fast!v1", message_id=1)),
            )

        asyncio.run(run())
        assert log == ["slow:start", "slow:end", "fast"]

    def test_sessions_are_independent(self) -> None:
        log: list[str] = []

        async def slow(args: RouteArgs[None, Any]) -> View:
            log.append(f"slow:{args.event.user_id}")
            await asyncio.sleep(0.02)
            log.append("slow:end")
            return View("Slow")

        def fast(args: RouteArgs[None, Any]) -> View:
            log.append(f"fast:{args.event.user_id}")
            return View("Fast")

        running = InlineRouter([route("slow", slow), route("fast", fast)]).run(RecordingTransport(), None)

        async def run() -> None:
            await asyncio.gather(
                running.handle_callback(callback_event("slow!v1", message_id=1, user_id=1)),
                running.handle_callback(callback_event("fast!v1", message_id=2, user_id=2)),
            )

        asyncio.run(run())
        assert log == ["slow:1", "fast:2", "slow:end"]

    def test_states_keyed_by_chat_and_user(self) -> None:
        running = InlineRouter([route("a", lambda args: View("A"), command="a")]).run(RecordingTransport(), None)

        async def run() -> None:
            await running.handle_command(command_event(chat_id=1, user_id=1), "a")
            await running.handle_command(command_event(chat_id=1, user_id=2), "a")
            await running.handle_command(command_event(chat_id=1, user_id=2), "a")

        asyncio.run(run())
        store = running.options.state_store
        first = asyncio.run(store.get(1, 1))
        second = asyncio.run(store.get(1, 2))
        assert first is not None and second is not None
        assert first.stack == ["a"]
        assert second.stack == ["a", "a"]
