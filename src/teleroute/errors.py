"""Error taxonomy of the inline router.

DuplicateRouteError and CommandCollision (registry) are programming
errors raised while building the router. UserFacingError is raised by
route handlers to show a friendly screen. Any other exception escaping a
handler is rendered as a generic error message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from teleroute.routes import ButtonLayout, RenderMode


class UserFacingError(Exception):
    """Expected failure with a display hint.

    Without ``text`` the screen shows ``ErrorUI.prefix + message``.

        raise UserFacingError("Not enough coins", buttons=[button("Top up", shop)])
    """

    def __init__(
        self,
        message: str,
        *,
        text: str | None = None,
        buttons: ButtonLayout | None = None,
        disable_preview: bool | None = None,
        render_mode: RenderMode | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.text = text
        self.buttons = buttons
        self.disable_preview = disable_preview
        self.render_mode = render_mode


class RouteNotFoundError(LookupError):
    """Raised when navigating to a route that is not in the registry."""

    def __init__(self, route_id: str) -> None:
        super().__init__(f"Route not found: {route_id}")
        self.route_id = route_id


class TransportError(Exception):
    """A chat transport call failed."""

    def __init__(self, operation: str, detail: object = None) -> None:
        message = f"{operation} failed" if detail is None else f"{operation} failed: {detail}"
        super().__init__(message)
        self.operation = operation
        self.detail = detail


__all__ = (
    "RouteNotFoundError",
    "TransportError",
    "UserFacingError",
)
