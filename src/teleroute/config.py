"""RouterOptions — configuration bundle of an InlineRouter.

    options = RouterOptions(
        theme=UITheme(nav=NavUI(back_label="Назад")),
        render_mode=RenderMode.EDIT,
        on_edit_fail=EditFailPolicy.REPLACE,
        max_messages=5,
    )

Every field has a default; stores default to fresh in-memory instances
per options object, so two routers never share sessions by accident.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from teleroute.callbacks import DEFAULT_VERSION
from teleroute.registry import CommandEntry
from teleroute.routes import EditFailPolicy, RenderMode
from teleroute.state import InMemoryStateStore, StateStore
from teleroute.tokens import InMemoryTokenStore, TokenStore
from teleroute.uilib.theme import DEFAULT_THEME, UITheme

if TYPE_CHECKING:
    from teleroute.state import RouterState
    from teleroute.transport import Event


type ErrorHook = Callable[[BaseException, Event, RouterState], None | Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RouterOptions:
    """Router-wide behaviour.

    Attributes:
        theme: Labels, system callback data, prompt and error texts.
        render_mode: Default RenderMode for views that do not set one.
        on_edit_fail: Fallback when an in-place edit fails.
        error_render_mode: RenderMode used for error screens.
        cancel_commands: Texts that cancel pending input (case-insensitive).
        show_cancel_on_wait: Show Cancel on routes waiting for text.
        cb_version: Version tag written into callback data.
        state_store: Session persistence.
        token_store: Storage for token-referenced callback payloads.
        max_messages: Rendered messages remembered per session.
        commands: Extra bot commands published before route commands.
        on_error: Observation hook called with every handler error.
    """

    theme: UITheme = DEFAULT_THEME
    render_mode: RenderMode = RenderMode.SMART
    on_edit_fail: EditFailPolicy = EditFailPolicy.REPLY
    error_render_mode: RenderMode = RenderMode.APPEND
    cancel_commands: Sequence[str] = ("/cancel", "cancel")
    show_cancel_on_wait: bool = True
    cb_version: str = DEFAULT_VERSION
    state_store: StateStore = field(default_factory=InMemoryStateStore)
    token_store: TokenStore = field(default_factory=InMemoryTokenStore)
    max_messages: int = 10
    commands: Sequence[CommandEntry] = ()
    on_error: ErrorHook | None = None

    def __post_init__(self) -> None:
        if self.max_messages < 1:
            raise ValueError(f"max_messages must be >= 1, got {self.max_messages}")
        if not self.cb_version or "!" in self.cb_version or ":" in self.cb_version:
            raise ValueError(f"Invalid cb_version: {self.cb_version!r}")

    def is_cancel_command(self, text: str) -> bool:
        folded = text.strip().casefold()
        return any(folded == c.casefold() for c in self.cancel_commands)


__all__ = (
    "ErrorHook",
    "RouterOptions",
)
