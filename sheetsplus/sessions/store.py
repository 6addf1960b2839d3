from __future__ import annotations

import asyncio
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import structlog
from fastapi import Depends

from sheetsplus.core.config import Settings, get_settings
from sheetsplus.core.exceptions import SessionNotFoundError
from sheetsplus.tabular.grid import GridEditor

__all__: list[str] = [
    "Session",
    "SessionStore",
    "get_session_store",
]

logger = structlog.get_logger(__name__)


@dataclass
class Session:
    """One in-memory editing session.

    All mutation of ``editor`` must happen while holding ``lock`` so that
    concurrent requests for the same session apply one at a time.
    """

    session_id: str
    editor: GridEditor
    filename: str
    content_type: str
    created_at: float
    last_access: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class SessionStore:
    """Process-local registry of editing sessions.

    Sessions expire ``ttl_s`` seconds after their last access; expired entries
    are purged lazily on every ``create``/``get``.  When ``max_sessions`` is
    reached the least recently used session is evicted.
    """

    def __init__(
        self,
        ttl_s: float = 3600,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_s = ttl_s
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(
        self,
        grid: Sequence[Sequence[str]],
        *,
        filename: str,
        content_type: str,
    ) -> Session:
        """Register a new session seeded with **grid** and return it."""
        self.purge_expired()
        while len(self._sessions) >= self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info("session_evicted", session_id=evicted_id, reason="capacity")

        now = self._clock()
        session = Session(
            session_id=uuid.uuid4().hex,
            editor=GridEditor(grid),
            filename=filename,
            content_type=content_type,
            created_at=now,
            last_access=now,
        )
        self._sessions[session.session_id] = session
        logger.info(
            "session_created",
            session_id=session.session_id,
            rows=session.editor.row_count,
            columns=session.editor.column_count,
        )
        return session

    def get(self, session_id: str) -> Session:
        """Return the live session for **session_id** and refresh its access time.

        Raises:
            SessionNotFoundError: If the id is unknown or the session expired.
        """
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.last_access = self._clock()
        self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> None:
        """Discard a session and its grid.

        Raises:
            SessionNotFoundError: If the id is unknown.
        """
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        logger.info("session_deleted", session_id=session_id)

    def purge_expired(self) -> List[str]:
        """Drop every session idle for longer than ``ttl_s``; return their ids."""
        cutoff = self._clock() - self.ttl_s
        expired = [sid for sid, s in self._sessions.items() if s.last_access < cutoff]
        for sid in expired:
            del self._sessions[sid]
            logger.info("session_expired", session_id=sid)
        return expired


_SESSION_STORE: Optional[SessionStore] = None


def get_session_store(
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> SessionStore:
    """Provide the process-wide session store, creating it on first use."""
    global _SESSION_STORE
    if _SESSION_STORE is None:
        _SESSION_STORE = SessionStore(
            ttl_s=settings.session_ttl_s, max_sessions=settings.max_sessions
        )
        logger.info(
            "session_store_initialised",
            ttl_s=settings.session_ttl_s,
            max_sessions=settings.max_sessions,
        )
    return _SESSION_STORE
