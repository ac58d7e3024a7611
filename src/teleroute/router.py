"""InlineRouter — registration API and the running router handle.

    router = InlineRouter([
        RouteNode(menu, children=[
            RouteNode(settings, has_back=True, children=[language]),
        ]),
    ], RouterOptions(render_mode=RenderMode.SMART))

    running = router.run(TelegrinderTransport(api), actions)
    running.attach(bot.dispatch)
    await running.register_commands()

Every entry point of RunningRouter loads the session and runs under the
session's lock, so events of one (chat, user) are handled one at a time
in arrival order. Nested navigation from inside handlers reuses the
session of the event being handled.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

import structlog
from kungfu import Error, Ok

from teleroute._shared import resolve
from teleroute.boundary import ErrorBoundary
from teleroute.config import RouterOptions
from teleroute.engine import NavigationEngine
from teleroute.registry import CommandEntry, DuplicateRouteError, RouteRegistry
from teleroute.render import Renderer
from teleroute.routes import Route, RouteTree
from teleroute.serializer import KeyedSerializer
from teleroute.state import Session
from teleroute.transport import ChatTransport, Event

if TYPE_CHECKING:
    from telegrinder.bot.dispatch import Dispatch

logger = structlog.get_logger(__name__)

type TextFallback = Callable[[Event], None | Awaitable[None]]


class InlineRouter[A]:
    """Route tree plus options. Validated eagerly on construction.

    Raises DuplicateRouteError / CommandCollision on a bad tree, and
    DuplicateRouteError when a route id equals a system callback.
    """

    def __init__(self, tree: RouteTree, options: RouterOptions | None = None) -> None:
        self.options = options if options is not None else RouterOptions()
        self.registry = RouteRegistry.build(tree)
        reserved = self.options.theme.system_callbacks
        for entry in self.registry.entries:
            if entry.route.id in reserved:
                raise DuplicateRouteError(f"Route id clashes with a system callback: {entry.route.id}")

    def run(self, transport: ChatTransport, actions: A) -> RunningRouter[A]:
        """Bind the router to a transport and the caller's actions."""
        return RunningRouter(self.registry, self.options, transport, actions)


class RunningRouter[A]:
    """Router bound to a transport and to one actions object."""

    def __init__(
        self,
        registry: RouteRegistry,
        options: RouterOptions,
        transport: ChatTransport,
        actions: A,
    ) -> None:
        self.registry = registry
        self.options = options
        self.transport = transport
        self.actions = actions
        renderer = Renderer(transport, options)
        self.engine = NavigationEngine(
            registry,
            renderer,
            ErrorBoundary(renderer, options),
            transport,
            options,
            actions,
        )
        self._serializer = KeyedSerializer()
        self._text_fallbacks: list[TextFallback] = []

    async def _exclusive[T](
        self,
        event: Event,
        step: Callable[[Session], Awaitable[T]],
    ) -> T:
        async def run() -> T:
            session = await Session.load(event, self.options.state_store)
            return await step(session)

        return await self._serializer.run_exclusive(event.session_key, run)

    # ── incoming events ───────────────────────────────────────────────────

    async def handle_command(self, event: Event, command: str) -> bool:
        """Open the route bound to ``command``. False if no route claims it."""
        if self.registry.route_for_command(command) is None:
            return False
        return await self._exclusive(
            event,
            lambda session: self.engine.handle_command(session, command),
        )

    async def handle_callback(self, event: Event) -> None:
        await self._exclusive(event, self.engine.handle_callback)

    async def handle_text(self, event: Event) -> bool:
        """Route free text; unclaimed text goes to the on_text fallbacks.

        Fallbacks run after the session lock is released.
        """
        claimed = await self._exclusive(event, self.engine.handle_text)
        if not claimed:
            for fallback in list(self._text_fallbacks):
                await resolve(fallback(event))
        return claimed

    # ── programmatic navigation ───────────────────────────────────────────

    async def navigate(
        self,
        event: Event,
        route: Route[Any, Any] | str,
        params: object = None,
    ) -> None:
        await self._exclusive(
            event,
            lambda session: self.engine.navigate(session, route, params),
        )

    async def navigate_back(self, event: Event) -> None:
        await self._exclusive(event, self.engine.navigate_back)

    def on_text(self, fn: TextFallback) -> Callable[[], None]:
        """Register a handler for text no route is waiting for.

        Returns a function that unregisters it.
        """
        self._text_fallbacks.append(fn)

        def unsubscribe() -> None:
            if fn in self._text_fallbacks:
                self._text_fallbacks.remove(fn)

        return unsubscribe

    # ── commands ──────────────────────────────────────────────────────────

    @property
    def commands(self) -> Sequence[CommandEntry]:
        """``options.commands`` first, then route commands; first name wins."""
        merged: dict[str, CommandEntry] = {}
        for entry in (*self.options.commands, *self.registry.commands):
            merged.setdefault(entry.command.lstrip("/"), entry)
        return list(merged.values())

    async def register_commands(self) -> bool:
        """Publish the command menu. Failure is logged, not raised."""
        commands = self.commands
        if not commands:
            return True
        match await self.transport.set_commands(commands):
            case Ok(_):
                logger.info("teleroute.commands_registered", count=len(commands))
                return True
            case Error(err):
                logger.warning("teleroute.commands_failed", error=str(err))
                return False
        return False

    def attach(self, dispatch: Dispatch) -> None:
        """Register command, callback and text handlers on a telegrinder Dispatch."""
        from teleroute.binding import attach

        attach(self, dispatch)


__all__ = (
    "InlineRouter",
    "RunningRouter",
    "TextFallback",
)
