"""UITheme — configurable UI strings for the inline router.

Labels of the system buttons, their callback data, the generic input
prompt and the error texts live in frozen dataclasses with defaults.

    from teleroute.uilib import UITheme, NavUI

    # unset fields keep their defaults
    theme = UITheme(nav=NavUI(back_label="Назад", cancel_label="Отмена"))
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class NavUI:
    """System navigation buttons appended to every rendered screen."""

    back_label: str = "◀ Back"
    back_callback: str = "__router_back__"
    cancel_label: str = "✖ Cancel"
    cancel_callback: str = "__router_cancel__"


@dataclass(frozen=True, slots=True)
class PromptUI:
    """Texts shown when a route waits for free-text input."""

    input_prompt: str = "Enter text:"


@dataclass(frozen=True, slots=True)
class ErrorUI:
    """Error rendering.

    ``prefix`` is prepended to the message of a UserFacingError without a
    custom text and to ``default_text`` for every other exception.
    """

    prefix: str = "⚠️ "
    default_text: str = "Something went wrong."


@dataclass(frozen=True, slots=True)
class UITheme:
    """Top-level theme container.

    Override sub-dataclasses to customize UI strings::

        theme = UITheme(errors=ErrorUI(prefix="Ошибка: "))
    """

    nav: NavUI = field(default_factory=NavUI)
    prompt: PromptUI = field(default_factory=PromptUI)
    errors: ErrorUI = field(default_factory=ErrorUI)

    @property
    def system_callbacks(self) -> frozenset[str]:
        return frozenset((self.nav.back_callback, self.nav.cancel_callback))


DEFAULT_THEME = UITheme()


__all__ = (
    "NavUI",
    "PromptUI",
    "ErrorUI",
    "UITheme",
    "DEFAULT_THEME",
)
