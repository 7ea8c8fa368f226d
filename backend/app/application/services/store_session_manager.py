"""Store Session Manager — one RecordStore per signed-in session."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from app.application.services.record_store import RecordStore
from app.domain.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _SessionEntry:
    store: RecordStore
    expires_at: datetime | None


class StoreSessionManager:
    """Owns the lifecycle of per-session record stores.

    A store is created and loaded when a session opens and dropped when it
    closes or its token expires; filters and the page cursor are therefore
    private to the session. Closed session ids are remembered until their
    token would have expired so a signed-out token cannot reopen a store.
    """

    def __init__(
        self,
        store_factory: Callable[[], RecordStore],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store_factory = store_factory
        self._clock = clock
        self._sessions: dict[str, _SessionEntry] = {}
        self._closed: dict[str, datetime | None] = {}

    def _expired(self, expires_at: datetime | None, now: datetime) -> bool:
        return expires_at is not None and expires_at <= now

    def evict_expired(self) -> int:
        """Drop stores and closed markers whose token has expired."""
        now = self._clock()
        stale = [sid for sid, entry in self._sessions.items() if self._expired(entry.expires_at, now)]
        for sid in stale:
            del self._sessions[sid]
            logger.info("Evicted expired record store for session %s", sid)
        for sid in [sid for sid, exp in self._closed.items() if self._expired(exp, now)]:
            del self._closed[sid]
        return len(stale)

    def is_closed(self, session_id: str) -> bool:
        self.evict_expired()
        return session_id in self._closed

    async def open(self, session_id: str, expires_at: datetime | None = None) -> RecordStore:
        """Create (or reuse) the store for ``session_id`` and load it.

        ``expires_at`` is the session token's expiry; the store is evicted
        once it passes. A closed session cannot be reopened.
        """
        self.evict_expired()
        if session_id in self._closed:
            raise NotFoundError("Session", session_id)
        entry = self._sessions.get(session_id)
        if entry is None:
            if self._expired(expires_at, self._clock()):
                raise NotFoundError("Session", session_id)
            entry = _SessionEntry(self._store_factory(), expires_at)
            self._sessions[session_id] = entry
            logger.info("Opened record store for session %s", session_id)
        if not entry.store.loaded:
            await entry.store.load_all()
        return entry.store

    def get(self, session_id: str) -> RecordStore:
        self.evict_expired()
        try:
            return self._sessions[session_id].store
        except KeyError:
            raise NotFoundError("Session", session_id) from None

    def close(self, session_id: str, expires_at: datetime | None = None) -> bool:
        """Tear down the session's store. Returns False if it was not open."""
        entry = self._sessions.pop(session_id, None)
        if entry is not None:
            expires_at = entry.expires_at
            logger.info("Closed record store for session %s", session_id)
        self._closed[session_id] = expires_at
        return entry is not None

    def shutdown(self) -> None:
        """Drop every open store (application exit)."""
        count = len(self._sessions)
        self._sessions.clear()
        self._closed.clear()
        logger.info("Store session manager shut down (%d sessions)", count)

    @property
    def session_count(self) -> int:
        return len(self._sessions)
