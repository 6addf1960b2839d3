from __future__ import annotations

from .store import Session, SessionStore, get_session_store

__all__: list[str] = [
    "Session",
    "SessionStore",
    "get_session_store",
]
