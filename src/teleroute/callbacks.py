"""Callback data codec.

Every inline button carries a compact string that Telegram echoes back
verbatim when the button is pressed::

    <route_id>!<version>[:<arg>...]        inline arguments
    <route_id>!<version>:t:<token>         payload kept in a TokenStore

    encode_callback("item", (42, "edit"))      # "item!v1:42:edit"
    decode_callback("item!v1:42:edit").args    # ("42", "edit")

Decoding never fails: a string without a version tag decodes to a
CallbackData whose route_id is the whole head segment, so callers treat
it as an unknown route instead of crashing.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from teleroute.tokens import TokenStore


TOKEN_MARKER = "t"
DEFAULT_VERSION = "v1"
DEFAULT_TOKEN_TTL = timedelta(minutes=10)

# Telegram rejects callback_data longer than 64 bytes.
MAX_CALLBACK_BYTES = 64


@dataclass(frozen=True, slots=True)
class CallbackData:
    """Decoded callback data."""

    route_id: str
    version: str | None = None
    args: tuple[str, ...] = ()
    is_token: bool = False
    token: str | None = None


def encode_callback(
    route_id: str,
    args: Sequence[object] = (),
    version: str = DEFAULT_VERSION,
) -> str:
    """Encode route id, version tag and inline arguments."""
    tail = ":" + ":".join(str(a) for a in args) if args else ""
    return f"{route_id}!{version}{tail}"


def decode_callback(data: str) -> CallbackData:
    """Decode callback data produced by encode_callback/encode_token_callback."""
    head, *rest = data.split(":")
    route_id, _, version = head.partition("!")
    if not version:
        return CallbackData(route_id=head, version=None, args=tuple(rest))
    if rest and rest[0] == TOKEN_MARKER:
        return CallbackData(
            route_id=route_id,
            version=version,
            args=tuple(rest[1:]),
            is_token=True,
            token=rest[1] if len(rest) > 1 else None,
        )
    return CallbackData(route_id=route_id, version=version, args=tuple(rest))


async def encode_token_callback(
    route_id: str,
    token_store: TokenStore,
    payload: object,
    ttl: timedelta | None = DEFAULT_TOKEN_TTL,
    version: str = DEFAULT_VERSION,
) -> str:
    """Store ``payload`` and encode a reference to it.

    Use when the payload does not fit into Telegram's callback limit.
    """
    token = await token_store.save(payload, ttl)
    return f"{route_id}!{version}:{TOKEN_MARKER}:{token}"


def fits_callback(data: str) -> bool:
    """Whether ``data`` is short enough to be used as callback_data."""
    return len(data.encode()) <= MAX_CALLBACK_BYTES


__all__ = (
    "CallbackData",
    "DEFAULT_TOKEN_TTL",
    "DEFAULT_VERSION",
    "MAX_CALLBACK_BYTES",
    "TOKEN_MARKER",
    "decode_callback",
    "encode_callback",
    "encode_token_callback",
    "fits_callback",
)
