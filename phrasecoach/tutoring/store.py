#!/usr/bin/env python3
"""
In-memory session store.

Holds every live practice session for the lifetime of the process. The
tutoring engine is the only writer; everything handed to other callers is a
deep copy.
"""

import copy
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from .errors import SessionNotFound
from .state import Session


class SessionStore:
    """Thread-safe mapping of session id to Session with per-session locks"""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def create(self, session: Session) -> None:
        """Insert or replace a whole session"""
        with self._guard:
            self._sessions[session.session_id] = session
            self._locks.setdefault(session.session_id, threading.RLock())

    def get(self, session_id: str) -> Session:
        """Live session object; raises SessionNotFound"""
        with self._guard:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def snapshot(self, session_id: str) -> Session:
        """Detached copy of a session, safe to hand to readers"""
        with self.locked(session_id) as session:
            return copy.deepcopy(session)

    def delete(self, session_id: str) -> None:
        """Remove a session once nobody holds it; no error if it is already gone"""
        with self._guard:
            lock = self._locks.get(session_id)
        if lock is None:
            return
        with lock:
            with self._guard:
                self._sessions.pop(session_id, None)
                if self._locks.get(session_id) is lock:
                    del self._locks[session_id]

    def contains(self, session_id: str) -> bool:
        with self._guard:
            return session_id in self._sessions

    def session_ids(self) -> List[str]:
        with self._guard:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)

    @contextmanager
    def locked(self, session_id: str) -> Iterator[Session]:
        """Serialize work on one session; other sessions are not blocked"""
        while True:
            with self._guard:
                lock = self._locks.get(session_id)
            if lock is None:
                raise SessionNotFound(session_id)
            with lock:
                # The session may have been deleted and recreated while we waited
                with self._guard:
                    current = self._locks.get(session_id)
                if current is lock:
                    yield self.get(session_id)
                    return
