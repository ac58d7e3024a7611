"""uilib — configurable UI strings and keyboard building for the inline router."""

from .theme import (
    NavUI,
    PromptUI,
    ErrorUI,
    UITheme,
    DEFAULT_THEME,
)

from .keyboard import (
    build_view_keyboard,
    ensure_rows,
    rows_equal,
    view_markup,
)

__all__ = (
    "NavUI",
    "PromptUI",
    "ErrorUI",
    "UITheme",
    "DEFAULT_THEME",
    "build_view_keyboard",
    "ensure_rows",
    "rows_equal",
    "view_markup",
)
