from __future__ import annotations

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, Optional, TypeVar
from uuid import uuid4

from .session import PatternSession

T = TypeVar("T")


@dataclass
class SessionRecord:
    pattern_id: str
    session: PatternSession
    meta: dict = field(default_factory=dict)
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())


class SessionStore:
    """In-process registry of edit sessions. Edits to one session are serialized; last write wins."""

    def __init__(self) -> None:
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = Lock()

    def create(self, session: PatternSession, *, meta: Optional[dict] = None) -> SessionRecord:
        record = SessionRecord(pattern_id=str(uuid4()), session=session, meta=meta or {})
        with self._lock:
            self._sessions[record.pattern_id] = record
        return record

    def get(self, pattern_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._sessions.get(pattern_id)

    def read(self, pattern_id: str, reader: Callable[[PatternSession], T]) -> Optional[T]:
        """Run ``reader`` against the session under the store lock without marking it modified."""
        with self._lock:
            record = self._sessions.get(pattern_id)
            if not record:
                return None
            return reader(record.session)

    def update(self, pattern_id: str, updater: Callable[[PatternSession], T]) -> Optional[T]:
        """Run ``updater`` against the session under the store lock and return its result."""
        with self._lock:
            record = self._sessions.get(pattern_id)
            if not record:
                return None
            result = updater(record.session)
            record.updated_at = time.time()
            return result


store = SessionStore()
