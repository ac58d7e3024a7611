"""Error boundary — turns handler exceptions into a rendered screen."""

from __future__ import annotations

import asyncio
import inspect

import structlog

from teleroute.config import RouterOptions
from teleroute.errors import UserFacingError
from teleroute.render import Renderer
from teleroute.routes import View
from teleroute.state import Session

logger = structlog.get_logger(__name__)


class ErrorBoundary:
    """Renders UserFacingError hints or a generic message for anything else.

    ``on_error`` is called first with the raw exception. A coroutine it
    returns runs as a background task; an exception it raises itself is
    not caught.
    """

    def __init__(self, renderer: Renderer, options: RouterOptions) -> None:
        self._renderer = renderer
        self._options = options
        self._hook_tasks: set[asyncio.Future[object]] = set()

    async def handle(
        self,
        session: Session,
        err: Exception,
        inherited_back: bool,
        inherited_cancel: bool,
    ) -> None:
        self._observe(session, err)
        await self._renderer.render(
            session,
            self.view_for(err),
            inherited_back,
            inherited_cancel,
        )

    def view_for(self, err: Exception) -> View:
        ui = self._options.theme.errors
        mode = self._options.error_render_mode
        if isinstance(err, UserFacingError):
            return View(
                text=err.text if err.text is not None else f"{ui.prefix}{err.message}",
                buttons=err.buttons or (),
                disable_preview=err.disable_preview if err.disable_preview is not None else True,
                render_mode=err.render_mode or mode,
            )
        return View(text=f"{ui.prefix}{ui.default_text}", render_mode=mode)

    def _observe(self, session: Session, err: Exception) -> None:
        key = session.event.session_key
        if isinstance(err, UserFacingError):
            logger.info("teleroute.user_error", session=key, message=err.message)
        else:
            logger.error("teleroute.unhandled_error", session=key, exc_info=err)

        hook = self._options.on_error
        if hook is None:
            return
        outcome = hook(err, session.event, session.state)
        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            self._hook_tasks.add(task)
            task.add_done_callback(self._hook_tasks.discard)


__all__ = ("ErrorBoundary",)
