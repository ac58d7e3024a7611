"""Renderer — reconciles a View with the messages already in the chat.

Behaviour per RenderMode:

    APPEND   send a new message
    REPLACE  delete the callback's message (else the last remembered one),
             then send
    EDIT     edit the callback's message; on failure apply EditFailPolicy;
             without a callback message, send
    SMART    EDIT, but skip the call when text, buttons and back/cancel
             flags equal what that message already shows

Every successful send or edit is remembered in the session; history
beyond ``max_messages`` is deleted oldest first. Cleanup goes through
``attempt``; only the final send of a branch may raise TransportError.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from kungfu import Error, Ok
from telegrinder.types.objects import InlineKeyboardMarkup

from teleroute._shared import attempt
from teleroute.config import RouterOptions
from teleroute.routes import Button, EditFailPolicy, RenderMode, View
from teleroute.state import RenderedMessage, Session
from teleroute.transport import ChatTransport
from teleroute.uilib.keyboard import ensure_rows, rows_equal, view_markup

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class _Draft:
    """A View resolved against inherited flags, ready to be sent."""

    text: str
    rows: tuple[tuple[Button, ...], ...]
    show_back: bool
    show_cancel: bool
    disable_preview: bool
    markup: InlineKeyboardMarkup | None

    def matches(self, record: RenderedMessage | None) -> bool:
        return (
            record is not None
            and record.text == self.text
            and rows_equal(record.buttons, self.rows)
            and record.show_back == self.show_back
            and record.show_cancel == self.show_cancel
        )

    def record(self, message_id: int) -> RenderedMessage:
        return RenderedMessage(
            message_id=message_id,
            text=self.text,
            buttons=self.rows,
            show_back=self.show_back,
            show_cancel=self.show_cancel,
        )


class Renderer:
    """Applies Views to one chat through a ChatTransport."""

    def __init__(self, transport: ChatTransport, options: RouterOptions) -> None:
        self._transport = transport
        self._options = options

    def draft(self, view: View, inherited_back: bool, inherited_cancel: bool) -> _Draft:
        rows = ensure_rows(view.buttons)
        show_back = view.show_back if view.show_back is not None else inherited_back
        show_cancel = view.show_cancel if view.show_cancel is not None else inherited_cancel
        return _Draft(
            text=view.text,
            rows=rows,
            show_back=show_back,
            show_cancel=show_cancel,
            disable_preview=view.disable_preview,
            markup=view_markup(
                rows,
                show_back=show_back,
                show_cancel=show_cancel,
                theme=self._options.theme,
            ),
        )

    async def render(
        self,
        session: Session,
        view: View,
        inherited_back: bool,
        inherited_cancel: bool,
    ) -> None:
        draft = self.draft(view, inherited_back, inherited_cancel)
        mode = view.render_mode or self._options.render_mode
        origin = session.event.message_id

        match mode:
            case RenderMode.APPEND:
                await self._send(session, draft)
            case RenderMode.REPLACE:
                last = session.state.last_message
                target = origin if origin is not None else (last.message_id if last else None)
                if target is not None:
                    await self._delete(session, target)
                await self._send(session, draft)
            case RenderMode.SMART | RenderMode.EDIT if origin is not None:
                if mode is RenderMode.SMART and draft.matches(session.state.find_message(origin)):
                    logger.debug(
                        "teleroute.render_skipped",
                        session=session.event.session_key,
                        message_id=origin,
                    )
                    return
                await self._edit(session, origin, draft)
            case _:
                await self._send(session, draft)

    async def clear_keyboard(self, session: Session) -> None:
        """Remove buttons from the callback's message, best-effort."""
        message_id = session.event.message_id
        if message_id is None:
            return
        cleared = await attempt(
            self._transport.clear_reply_markup(session.event.chat_id, message_id),
            "clear_reply_markup",
            message_id=message_id,
        )
        record = session.state.find_message(message_id)
        if cleared and record is not None:
            session.state.remember(
                RenderedMessage(
                    message_id=message_id,
                    text=record.text,
                    buttons=(),
                    show_back=False,
                    show_cancel=False,
                ),
            )
            await session.save()

    # ── branches ──────────────────────────────────────────────────────────

    async def _edit(self, session: Session, message_id: int, draft: _Draft) -> None:
        edited = await attempt(
            self._transport.edit_message_text(
                session.event.chat_id,
                message_id,
                draft.text,
                reply_markup=draft.markup,
                disable_preview=draft.disable_preview,
            ),
            "edit_message_text",
            message_id=message_id,
        )
        if edited:
            await self._remember(session, draft.record(message_id))
            return
        match self._options.on_edit_fail:
            case EditFailPolicy.IGNORE:
                return
            case EditFailPolicy.REPLACE:
                await self._delete(session, message_id)
            case EditFailPolicy.REPLY:
                pass
        await self._send(session, draft)

    async def _send(self, session: Session, draft: _Draft) -> None:
        result = await self._transport.send_message(
            session.event.chat_id,
            draft.text,
            reply_markup=draft.markup,
            disable_preview=draft.disable_preview,
        )
        match result:
            case Ok(message_id):
                await self._remember(session, draft.record(message_id))
            case Error(err):
                raise err

    async def _delete(self, session: Session, message_id: int) -> None:
        deleted = await attempt(
            self._transport.delete_message(session.event.chat_id, message_id),
            "delete_message",
            message_id=message_id,
        )
        if deleted:
            session.state.forget(message_id)
            await session.save()

    async def _remember(self, session: Session, record: RenderedMessage) -> None:
        session.state.remember(record)
        for stale in session.state.take_overflow(self._options.max_messages):
            await attempt(
                self._transport.delete_message(session.event.chat_id, stale.message_id),
                "delete_message",
                message_id=stale.message_id,
            )
        await session.save()


__all__ = ("Renderer",)
