"""Keyboard helpers: button grid normalisation and markup building."""

from __future__ import annotations

from collections.abc import Sequence

from telegrinder.tools.keyboard import InlineButton, InlineKeyboard
from telegrinder.types.objects import InlineKeyboardMarkup

from teleroute.routes import Button, ButtonLayout
from teleroute.uilib.theme import UITheme


def ensure_rows(buttons: ButtonLayout | None) -> tuple[tuple[Button, ...], ...]:
    """Normalise a View's buttons into rows. A bare Button is a row."""
    if not buttons:
        return ()
    out: list[tuple[Button, ...]] = []
    for item in buttons:
        if isinstance(item, Button):
            out.append((item,))
        else:
            out.append(tuple(item))
    return tuple(out)


def rows_equal(
    left: Sequence[Sequence[Button]],
    right: Sequence[Sequence[Button]],
) -> bool:
    """Same shape, and same text and callback per button."""
    if len(left) != len(right):
        return False
    for left_row, right_row in zip(left, right):
        if len(left_row) != len(right_row):
            return False
        for a, b in zip(left_row, right_row):
            if a.text != b.text or a.callback != b.callback:
                return False
    return True


def build_view_keyboard(
    rows: Sequence[Sequence[Button]],
    *,
    show_back: bool,
    show_cancel: bool,
    theme: UITheme,
) -> InlineKeyboard | None:
    """Build inline keyboard for a View.

    Args:
        rows: Normalised button rows.
        show_back: Append the Back system button.
        show_cancel: Append the Cancel system button.
        theme: UITheme for labels and system callback data.

    Cancel precedes Back in a trailing row. Returns None when there is
    nothing to show.
    """
    kb = InlineKeyboard()
    has_buttons = False
    for line in rows:
        if not line:
            continue
        for btn in line:
            kb.add(InlineButton(text=btn.text, callback_data=btn.callback))
        kb.row()
        has_buttons = True

    if show_cancel:
        kb.add(InlineButton(text=theme.nav.cancel_label, callback_data=theme.nav.cancel_callback))
    if show_back:
        kb.add(InlineButton(text=theme.nav.back_label, callback_data=theme.nav.back_callback))
    if show_cancel or show_back:
        kb.row()
        has_buttons = True

    return kb if has_buttons else None


def view_markup(
    rows: Sequence[Sequence[Button]],
    *,
    show_back: bool,
    show_cancel: bool,
    theme: UITheme,
) -> InlineKeyboardMarkup | None:
    kb = build_view_keyboard(rows, show_back=show_back, show_cancel=show_cancel, theme=theme)
    return kb.get_markup() if kb is not None else None


__all__ = (
    "build_view_keyboard",
    "ensure_rows",
    "rows_equal",
    "view_markup",
)
