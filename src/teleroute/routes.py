"""Routes, views and buttons — the declarative side of the inline router.

A route is a named screen. Its handler receives RouteArgs and returns a
View (text + button grid) or None::

    from teleroute.routes import View, button, route

    @route("settings", description="Settings")
    async def settings(args: RouteArgs[Actions, None]) -> View:
        return View("Settings", [button("Language", lang)])

    @route("lang", on_text=set_language)
    def lang(args: RouteArgs[Actions, None]) -> None:
        return None  # generic input prompt is shown

Routes are grouped into a tree with RouteNode. ``has_back`` on a node
adds a Back button to that route and to every bare descendant.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, overload

from teleroute.callbacks import DEFAULT_TOKEN_TTL, DEFAULT_VERSION, encode_callback, encode_token_callback

if TYPE_CHECKING:
    from datetime import timedelta

    from teleroute.callbacks import CallbackData
    from teleroute.state import RouterState
    from teleroute.tokens import TokenStore
    from teleroute.transport import Event


# ═══════════════════════════════════════════════════════════════════════════════
# Mode enums
# ═══════════════════════════════════════════════════════════════════════════════


class RenderMode(Enum):
    """How a new View is reconciled with previously sent messages.

    APPEND: always send a new message.
    REPLACE: delete the previous message, then send a new one.
    EDIT: edit the message the button was pressed on (send if none).
    SMART: like EDIT, but skip the call when nothing changed.
    """

    APPEND = "append"
    REPLACE = "replace"
    EDIT = "edit"
    SMART = "smart"


class EditFailPolicy(Enum):
    """What to do when an in-place edit fails.

    REPLY: send a new message, keep the old one.
    REPLACE: delete the old message, then send a new one.
    IGNORE: leave the chat as is.
    """

    REPLY = "reply"
    REPLACE = "replace"
    IGNORE = "ignore"


# ═══════════════════════════════════════════════════════════════════════════════
# Handler arguments
# ═══════════════════════════════════════════════════════════════════════════════


type Navigate = Callable[..., Awaitable[None]]
type NavigateBack = Callable[[], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RouteArgs[A, P]:
    """Everything a route handler (or free-text handler) gets.

    ``callback`` is the decoded callback data when the route was opened by
    a button press. ``text`` is set for free-text handlers only.
    ``version`` and ``token_store`` come from RouterOptions; ``button`` and
    ``token_button`` encode callbacks with them.
    """

    event: Event
    actions: A
    params: P | None
    navigate: Navigate
    navigate_back: NavigateBack
    state: RouterState
    callback: CallbackData | None = None
    text: str | None = None
    version: str = DEFAULT_VERSION
    token_store: TokenStore | None = None

    def button(
        self,
        text: str,
        target: Route[Any, Any] | str,
        args: Sequence[object] = (),
        *,
        action: ButtonAction[Any] | None = None,
        answer: ButtonAnswer | None = None,
    ) -> Button:
        return button(text, target, args, action=action, answer=answer, version=self.version)

    async def token_button(
        self,
        text: str,
        target: Route[Any, Any] | str,
        payload: object,
        ttl: timedelta | None = DEFAULT_TOKEN_TTL,
    ) -> Button:
        """Button whose target receives ``payload`` as params."""
        if self.token_store is None:
            raise RuntimeError("token_button needs a token store")
        route_id = target if isinstance(target, str) else target.id
        data = await encode_token_callback(route_id, self.token_store, payload, ttl, self.version)
        return Button(text, data)


@dataclass(frozen=True, slots=True)
class ButtonArgs[A]:
    """Arguments of an inline button action."""

    event: Event
    actions: A
    navigate: Navigate
    navigate_back: NavigateBack
    callback: CallbackData | None = None


type ViewResult = View | None | Awaitable[View | None]
type RouteHandler[A, P] = Callable[[RouteArgs[A, P]], ViewResult]
type ButtonAction[A] = Callable[[ButtonArgs[A]], None | Awaitable[None]]


# ═══════════════════════════════════════════════════════════════════════════════
# Views and buttons
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ButtonAnswer:
    """Callback acknowledgement shown when a button is pressed."""

    text: str | None = None
    show_alert: bool = False
    url: str | None = None
    cache_time: int | None = None


@dataclass(frozen=True, slots=True)
class Button:
    """Inline button.

    With ``action`` the press runs the action instead of opening the
    route encoded in ``callback``. Buttons compare by text and callback.
    """

    text: str
    callback: str
    action: ButtonAction[Any] | None = field(default=None, compare=False)
    answer: ButtonAnswer | None = field(default=None, compare=False)


type ButtonLayout = Sequence[Button | Sequence[Button]]


@dataclass(frozen=True, slots=True)
class View:
    """Desired screen: text plus a button grid.

    A bare Button in ``buttons`` is a row of its own. ``None`` in
    ``render_mode``/``show_back``/``show_cancel`` means "use what the
    router computed".
    """

    text: str
    buttons: ButtonLayout = ()
    disable_preview: bool = True
    render_mode: RenderMode | None = None
    show_back: bool | None = None
    show_cancel: bool | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, eq=False)
class Route[A, P]:
    """Named screen. Identity is the route object; ``id`` must be unique."""

    id: str
    handler: RouteHandler[A, P]
    on_text: RouteHandler[A, P] | None = None
    command: str | None = None
    description: str | None = None
    order: int = 100
    show_cancel_on_wait: bool | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Route id must be non-empty")
        if "!" in self.id or ":" in self.id:
            raise ValueError(f"Route id {self.id!r} must not contain '!' or ':'")


@dataclass(frozen=True, slots=True)
class RouteNode:
    """Route plus explicit back flag and children. Registration only."""

    route: Route[Any, Any]
    has_back: bool = False
    children: Sequence[RouteNode | Route[Any, Any]] = ()


type RouteTree = Sequence[RouteNode | Route[Any, Any]]


@overload
def route[A, P](
    id: str,
    handler: RouteHandler[A, P],
    *,
    on_text: RouteHandler[A, P] | None = None,
    command: str | None = None,
    description: str | None = None,
    order: int = 100,
    show_cancel_on_wait: bool | None = None,
) -> Route[A, P]: ...


@overload
def route[A, P](
    id: str,
    handler: None = None,
    *,
    on_text: RouteHandler[A, P] | None = None,
    command: str | None = None,
    description: str | None = None,
    order: int = 100,
    show_cancel_on_wait: bool | None = None,
) -> Callable[[RouteHandler[A, P]], Route[A, P]]: ...


def route[A, P](
    id: str,
    handler: RouteHandler[A, P] | None = None,
    *,
    on_text: RouteHandler[A, P] | None = None,
    command: str | None = None,
    description: str | None = None,
    order: int = 100,
    show_cancel_on_wait: bool | None = None,
) -> Route[A, P] | Callable[[RouteHandler[A, P]], Route[A, P]]:
    """Create a Route, directly or as a decorator over its handler."""

    def build(fn: RouteHandler[A, P]) -> Route[A, P]:
        return Route(
            id=id,
            handler=fn,
            on_text=on_text,
            command=command,
            description=description,
            order=order,
            show_cancel_on_wait=show_cancel_on_wait,
        )

    if handler is None:
        return build
    return build(handler)


# ═══════════════════════════════════════════════════════════════════════════════
# Button DSL
# ═══════════════════════════════════════════════════════════════════════════════


def button(
    text: str,
    target: Route[Any, Any] | str,
    args: Sequence[object] = (),
    *,
    action: ButtonAction[Any] | None = None,
    answer: ButtonAnswer | None = None,
    version: str = DEFAULT_VERSION,
) -> Button:
    """Button opening ``target`` (a Route or a route id) with inline args."""
    route_id = target if isinstance(target, str) else target.id
    return Button(
        text=text,
        callback=encode_callback(route_id, args, version),
        action=action,
        answer=answer,
    )


def row(*buttons: Button) -> tuple[Button, ...]:
    return buttons


def rows(*lines: Button | Sequence[Button]) -> tuple[Button | Sequence[Button], ...]:
    return lines


def pager(page: int, pages: int, prev: Button, next: Button) -> tuple[Button, ...]:
    """Prev/next row for 1-based ``page`` out of ``pages``."""
    out: list[Button] = []
    if page > 1:
        out.append(prev)
    if page < pages:
        out.append(next)
    return tuple(out)


def columns(buttons: Sequence[Button], width: int) -> tuple[tuple[Button, ...], ...]:
    """Wrap buttons into rows of ``width``."""
    if width < 1:
        raise ValueError("width must be >= 1")
    return tuple(
        tuple(buttons[i:i + width])
        for i in range(0, len(buttons), width)
    )


__all__ = (
    "Button",
    "ButtonAction",
    "ButtonAnswer",
    "ButtonArgs",
    "ButtonLayout",
    "EditFailPolicy",
    "Navigate",
    "NavigateBack",
    "RenderMode",
    "Route",
    "RouteArgs",
    "RouteHandler",
    "RouteNode",
    "RouteTree",
    "View",
    "button",
    "columns",
    "pager",
    "route",
    "row",
    "rows",
)
