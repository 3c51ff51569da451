"""
Key/value store with per-key TTL for in-flight OAuth handshakes.

The OAuth start and callback legs may land on different workers, so the
CSRF binding lives behind this interface instead of in process memory of a
single request. An expired entry is reported absent whether or not the
backend has physically purged it.
"""
from __future__ import annotations

import json
import threading
import time
from datetime import UTC, datetime
from typing import Any, Callable, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..core.logging import get_logger
from ..db import upsert_insert
from ..models.session_records import SessionRecord

Clock = Callable[[], float]


class SessionStore(Protocol):
    def put(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None: ...

    def get(self, key: str) -> dict[str, Any] | None: ...

    def delete(self, key: str) -> None: ...


class InMemorySessionStore:
    """Process-local store; suitable for a single worker and for tests."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._data: dict[str, tuple[dict[str, Any], float]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            # Abandoned handshakes are never read again; drop them here
            for stale in [k for k, (_, expires_at) in self._data.items() if now >= expires_at]:
                del self._data[stale]
            self._data[key] = (dict(value), now + ttl_seconds)

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._data[key]
                return None
            return dict(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class DatabaseSessionStore:
    """Store backed by the ``session_records`` table; shared across workers."""

    def __init__(self, session: Session, clock: Clock = time.time) -> None:
        self._session = session
        self._clock = clock
        self._logger = get_logger(__name__)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=UTC)

    def put(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        expires_at = datetime.fromtimestamp(self._clock() + ttl_seconds, tz=UTC)
        stmt = upsert_insert(self._session, SessionRecord).values(
            key=key, value=json.dumps(value), expires_at=expires_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[SessionRecord.key],
            set_={"value": stmt.excluded.value, "expires_at": stmt.excluded.expires_at},
        )
        self._delete_expired()
        self._session.execute(stmt)
        self._session.commit()

    def get(self, key: str) -> dict[str, Any] | None:
        row = self._session.execute(
            select(SessionRecord)
            .where(SessionRecord.key == key)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if row is None:
            return None
        expires_at = row.expires_at
        if expires_at.tzinfo is None:
            # SQLite drops the offset; values are always written in UTC
            expires_at = expires_at.replace(tzinfo=UTC)
        if self._now() >= expires_at:
            self.delete(key)
            return None
        return json.loads(row.value)

    def delete(self, key: str) -> None:
        self._session.execute(delete(SessionRecord).where(SessionRecord.key == key))
        self._session.commit()

    def _delete_expired(self) -> int:
        result = self._session.execute(
            delete(SessionRecord)
            .where(SessionRecord.expires_at <= self._now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def purge_expired(self) -> int:
        """Delete all expired rows; returns how many were removed."""
        count = self._delete_expired()
        self._session.commit()
        self._logger.info("session_store.purged", count=count)
        return count
