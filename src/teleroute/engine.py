"""Navigation engine — the session state machine.

A session is either empty or "at route R" (R = top of the stack).

    navigate(R, params)   push R, store params, run R's handler, render
    navigate_back()       pop, re-run the new top with its stored params;
                          on an empty stack clear the keyboard and stop
    cancel_wait()         drop the route awaiting text, then navigate_back()

Button presses and free text are dispatched here too. This is the only
layer that catches handler exceptions; they go to the ErrorBoundary
with the back/cancel visibility of the operation that failed.

Every method expects to run under the session's lock (see
RunningRouter) with the Session loaded for the current event.
"""

from __future__ import annotations

from typing import Any

import structlog
from kungfu import Some

from teleroute._shared import attempt, resolve
from teleroute.boundary import ErrorBoundary
from teleroute.callbacks import CallbackData, decode_callback
from teleroute.config import RouterOptions
from teleroute.errors import RouteNotFoundError
from teleroute.registry import RouteEntry, RouteRegistry
from teleroute.render import Renderer
from teleroute.routes import Button, ButtonArgs, Navigate, NavigateBack, Route, RouteArgs, View
from teleroute.state import RenderedMessage, RouterState, Session
from teleroute.transport import ChatTransport

logger = structlog.get_logger(__name__)


class NavigationEngine[A]:
    """Runs route handlers and button actions for one running router."""

    def __init__(
        self,
        registry: RouteRegistry,
        renderer: Renderer,
        boundary: ErrorBoundary,
        transport: ChatTransport,
        options: RouterOptions,
        actions: A,
    ) -> None:
        self._registry = registry
        self._renderer = renderer
        self._boundary = boundary
        self._transport = transport
        self._options = options
        self._actions = actions

    # ═══════════════════════════════════════════════════════════════════════════
    # Stack operations
    # ═══════════════════════════════════════════════════════════════════════════

    async def navigate(
        self,
        session: Session,
        target: Route[Any, Any] | str,
        params: object = None,
        *,
        callback: CallbackData | None = None,
    ) -> None:
        """Push ``target`` and show it.

        Raises RouteNotFoundError, before touching the session, when the
        route is not registered.
        """
        route_id = target if isinstance(target, str) else target.id
        entry = self._registry.get(route_id)
        if entry is None:
            raise RouteNotFoundError(route_id)

        state = session.state
        state.stack.append(route_id)
        state.params[route_id] = params
        state.awaiting_text_route_id = None
        await session.save()
        logger.debug("teleroute.navigate", session=session.event.session_key, route_id=route_id)
        await self._show(session, entry, params, callback)

    async def navigate_back(self, session: Session) -> None:
        state = session.state
        if state.stack:
            state.stack.pop()
        state.awaiting_text_route_id = None
        await session.save()

        top = state.top_route_id
        if top is None:
            await self._renderer.clear_keyboard(session)
            return
        entry = self._registry.get(top)
        if entry is None:
            logger.warning("teleroute.unknown_route_on_stack", session=session.event.session_key, route_id=top)
            return
        await self._show(session, entry, state.params.get(top), None)

    async def cancel_wait(self, session: Session) -> None:
        state = session.state
        awaiting = state.awaiting_text_route_id
        if awaiting is not None:
            if state.top_route_id == awaiting:
                state.stack.pop()
            elif awaiting in state.stack:
                # A button action navigated away while input was pending.
                state.stack.remove(awaiting)
            state.awaiting_text_route_id = None
            await session.save()
        await self.navigate_back(session)

    async def _show(
        self,
        session: Session,
        entry: RouteEntry,
        params: object,
        callback: CallbackData | None,
    ) -> None:
        route = entry.route
        show_back, show_cancel = self.visibility(entry)
        try:
            view = await resolve(route.handler(self._route_args(session, params, callback)))
            if view is None and route.on_text is not None:
                view = View(text=self._options.theme.prompt.input_prompt)
            if view is not None:
                await self._renderer.render(session, view, show_back, show_cancel)
            if route.on_text is not None:
                session.state.awaiting_text_route_id = route.id
                await session.save()
        except Exception as err:
            await self._boundary.handle(session, err, show_back, show_cancel)

    def visibility(self, entry: RouteEntry) -> tuple[bool, bool]:
        """(back, cancel) visibility a route's screens inherit."""
        route = entry.route
        show_cancel = False
        if route.on_text is not None:
            if route.show_cancel_on_wait is not None:
                show_cancel = route.show_cancel_on_wait
            else:
                show_cancel = self._options.show_cancel_on_wait
        return entry.shows_back, show_cancel

    # ═══════════════════════════════════════════════════════════════════════════
    # Incoming events
    # ═══════════════════════════════════════════════════════════════════════════

    async def handle_command(self, session: Session, command: str) -> bool:
        """Open the route bound to ``command``. False if none is."""
        route = self._registry.route_for_command(command)
        if route is None:
            return False
        await self.navigate(session, route)
        return True

    async def handle_callback(self, session: Session) -> None:
        event = session.event
        data = event.data
        if not data:
            return
        callback = decode_callback(data)
        pressed = find_button(session.state, event.message_id, data)
        await self._acknowledge(session, pressed)

        nav = self._options.theme.nav
        if data == nav.cancel_callback:
            await self.cancel_wait(session)
            return
        if data == nav.back_callback:
            await self.navigate_back(session)
            return

        if pressed is not None and pressed.action is not None:
            await self.run_button_action(session, pressed, callback)
            return

        entry = self._registry.get(callback.route_id)
        if entry is None:
            logger.warning("teleroute.unknown_callback", session=event.session_key, data=data)
            return
        params = await self._callback_params(session.state, callback)
        await self.navigate(session, entry.route, params, callback=callback)

    async def run_button_action(
        self,
        session: Session,
        pressed: Button,
        callback: CallbackData | None = None,
    ) -> None:
        """Run an inline action without touching the stack."""
        if pressed.action is None:
            return
        args = ButtonArgs(
            event=session.event,
            actions=self._actions,
            navigate=self._bound_navigate(session),
            navigate_back=self._bound_navigate_back(session),
            callback=callback,
        )
        try:
            await resolve(pressed.action(args))
        except Exception as err:
            entry = self._registry.get(session.state.top_route_id)
            show_back = entry.shows_back if entry is not None else False
            await self._boundary.handle(session, err, show_back, False)

    async def handle_text(self, session: Session) -> bool:
        """Feed free text to the route awaiting it.

        Returns False when no route claims the text; the caller passes it
        on to its fallback handlers.
        """
        state = session.state
        awaiting = state.awaiting_text_route_id
        if awaiting is None:
            return False

        text = (session.event.text or "").strip()
        if self._options.is_cancel_command(text):
            await self.cancel_wait(session)
            return True

        entry = self._registry.get(awaiting)
        if entry is None or entry.route.on_text is None:
            state.awaiting_text_route_id = None
            await session.save()
            return False

        show_back, show_cancel = self.visibility(entry)
        args = self._route_args(session, state.params.get(awaiting), None, text=text)
        try:
            view = await resolve(entry.route.on_text(args))
            if state.awaiting_text_route_id != awaiting:
                logger.debug(
                    "teleroute.stale_text_result",
                    session=session.event.session_key,
                    route_id=awaiting,
                    awaiting=state.awaiting_text_route_id,
                )
                return True
            if view is not None:
                await self._renderer.render(session, view, show_back, False)
                state.awaiting_text_route_id = None
                await session.save()
            else:
                state.awaiting_text_route_id = None
                await session.save()
                await self.navigate_back(session)
        except Exception as err:
            await self._boundary.handle(session, err, show_back, show_cancel)
        return True

    # ═══════════════════════════════════════════════════════════════════════════
    # Helpers
    # ═══════════════════════════════════════════════════════════════════════════

    async def _acknowledge(self, session: Session, pressed: Button | None) -> None:
        callback_id = session.event.callback_id
        if callback_id is None:
            return
        await attempt(
            self._transport.answer_callback(callback_id, pressed.answer if pressed else None),
            "answer_callback",
            session=session.event.session_key,
        )

    async def _callback_params(self, state: RouterState, callback: CallbackData) -> object:
        """Token payload if the callback references a live token, else stored params."""
        if callback.is_token and callback.token:
            match await self._options.token_store.load(callback.token):
                case Some(payload):
                    return payload
                case _:
                    logger.debug("teleroute.token_missing", route_id=callback.route_id, token=callback.token)
        return state.params.get(callback.route_id)

    def _route_args(
        self,
        session: Session,
        params: object,
        callback: CallbackData | None,
        *,
        text: str | None = None,
    ) -> RouteArgs[A, Any]:
        return RouteArgs(
            event=session.event,
            actions=self._actions,
            params=params,
            navigate=self._bound_navigate(session),
            navigate_back=self._bound_navigate_back(session),
            state=session.state,
            callback=callback,
            text=text,
            version=self._options.cb_version,
            token_store=self._options.token_store,
        )

    def _bound_navigate(self, session: Session) -> Navigate:
        async def navigate(target: Route[Any, Any] | str, params: object = None) -> None:
            await self.navigate(session, target, params)

        return navigate

    def _bound_navigate_back(self, session: Session) -> NavigateBack:
        async def navigate_back() -> None:
            await self.navigate_back(session)

        return navigate_back


def find_button(state: RouterState, message_id: int | None, data: str) -> Button | None:
    """Pressed button: look in the callback's message first, then the last one."""
    candidates: list[RenderedMessage] = []
    if message_id is not None:
        origin = state.find_message(message_id)
        if origin is not None:
            candidates.append(origin)
    last = state.last_message
    if last is not None:
        candidates.append(last)
    for record in candidates:
        for line in record.buttons:
            for btn in line:
                if btn.callback == data:
                    return btn
    return None


__all__ = (
    "NavigationEngine",
    "find_button",
)
