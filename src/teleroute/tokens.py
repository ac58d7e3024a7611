"""Token store for callback payloads too large to inline."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

from kungfu import Nothing, Option, Some


class TokenStore(Protocol):
    """Short random token -> payload, with optional expiry.

    Persistent implementations let several bot processes share tokens.
    """

    async def save(self, payload: object, ttl: timedelta | None = None) -> str: ...

    async def load(self, token: str) -> Option[object]: ...

    async def delete(self, token: str) -> None: ...


@dataclass(slots=True)
class _TokenRecord:
    payload: object
    expires_at: float | None


class InMemoryTokenStore:
    """Process-local TokenStore.

    Tokens are 10 hex chars. Collisions are not checked: last write wins.
    Expired records are evicted lazily when read.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        token_bytes: int = 5,
    ) -> None:
        self._records: dict[str, _TokenRecord] = {}
        self._clock = clock
        self._token_bytes = token_bytes

    async def save(self, payload: object, ttl: timedelta | None = None) -> str:
        token = secrets.token_hex(self._token_bytes)
        expires_at = self._clock() + ttl.total_seconds() if ttl else None
        self._records[token] = _TokenRecord(payload=payload, expires_at=expires_at)
        return token

    async def load(self, token: str) -> Option[object]:
        record = self._records.get(token)
        if record is None:
            return Nothing()
        if record.expires_at is not None and self._clock() > record.expires_at:
            del self._records[token]
            return Nothing()
        return Some(record.payload)

    async def delete(self, token: str) -> None:
        self._records.pop(token, None)

    def __len__(self) -> int:
        return len(self._records)


__all__ = (
    "InMemoryTokenStore",
    "TokenStore",
)
