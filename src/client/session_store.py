"""Persisted, recency-ordered list of chat sessions.

Backed by any mutable mapping (NiceGUI's ``app.storage.user`` in the UI,
a plain dict in tests). The whole list is stored as one JSON string under
a single key and rewritten on every mutation.
"""

import json
import logging
from collections.abc import MutableMapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from src.models.schemas import ChatSession

logger = logging.getLogger(__name__)

STORAGE_KEY = "chatSessions"
TITLE_LENGTH = 30

_sessions_adapter = TypeAdapter(list[ChatSession])


def make_title(message: str) -> str:
    """Session title from the first user message."""
    return message[:TITLE_LENGTH] + ("..." if len(message) > TITLE_LENGTH else "")


class SessionStore:
    """Ordered ChatSession list, newest first, unique by thread id."""

    def __init__(self, storage: MutableMapping[str, Any], key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._sessions: list[ChatSession] = []

    @property
    def sessions(self) -> list[ChatSession]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, thread_id: object) -> bool:
        return any(s.thread_id == thread_id for s in self._sessions)

    def load(self) -> list[ChatSession]:
        """Read the persisted list.

        Absent storage means an empty list. Unparseable or structurally
        invalid data is discarded (the record is removed) and also yields an
        empty list; it is never raised.
        """
        raw = self._storage.get(self._key)
        if raw is None:
            self._sessions = []
            return self.sessions

        try:
            sessions = _sessions_adapter.validate_json(raw)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Invalid session data found in storage, clearing: {e}")
            self._storage.pop(self._key, None)
            sessions = []

        self._sessions = sorted(sessions, key=lambda s: s.timestamp, reverse=True)
        return self.sessions

    def upsert(self, session: ChatSession) -> None:
        """Insert or replace by thread id, then re-sort and persist."""
        others = [s for s in self._sessions if s.thread_id != session.thread_id]
        self._sessions = sorted([session, *others], key=lambda s: s.timestamp, reverse=True)
        self._persist()

    def remove(self, thread_id: str) -> bool:
        """Drop one session. Returns False when it was not stored."""
        remaining = [s for s in self._sessions if s.thread_id != thread_id]
        if len(remaining) == len(self._sessions):
            return False
        self._sessions = remaining
        self._persist()
        return True

    def clear(self) -> None:
        self._sessions = []
        self._storage.pop(self._key, None)

    def _persist(self) -> None:
        payload = [s.model_dump(by_alias=True) for s in self._sessions]
        self._storage[self._key] = json.dumps(payload)
