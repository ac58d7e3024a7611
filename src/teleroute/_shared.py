"""Shared runtime helpers: sync-or-async handler results and best-effort calls.

``attempt`` is the only place where transport failures are swallowed.
It is used for cleanup (deleting stale or pruned messages, clearing a
keyboard, acknowledging callbacks) and for edit attempts that have a
fallback. Primary sends never go through it.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable

import structlog
from kungfu import Error, Ok, Result

from teleroute.errors import TransportError

logger = structlog.get_logger(__name__)


async def resolve[T](value: T | Awaitable[T]) -> T:
    """Await ``value`` if a sync-or-async handler returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


async def attempt(
    call: Awaitable[Result[object, TransportError]],
    operation: str,
    **context: object,
) -> bool:
    """Run a transport call, log and ignore its failure.

    Returns whether the call succeeded.
    """
    try:
        result = await call
    except TransportError as exc:
        logger.debug("teleroute.best_effort_failed", operation=operation, error=str(exc), **context)
        return False
    match result:
        case Ok(_):
            return True
        case Error(err):
            logger.debug("teleroute.best_effort_failed", operation=operation, error=str(err), **context)
            return False
    return False


__all__ = (
    "attempt",
    "resolve",
)
