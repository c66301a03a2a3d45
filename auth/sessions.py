"""
auth/sessions.py -- Session authority: opaque handles bound to identity snapshots.

Sessions live in process memory, not in the user store. Each login gets an
independent entry keyed by a fresh handle, so two concurrent logins of the
same user never share or overwrite state. One lock guards the map; every
operation holds it only for dict work, never for I/O.

Handles are secrets.token_urlsafe(32) -- 256 bits of entropy, so guessing a
live handle is infeasible. The handle is the only thing the client sees.

Expiry is lazy on read (resolve() drops an expired entry it finds) plus a
periodic purge_expired() sweep from the API lifespan, so abandoned sessions
do not accumulate.

Layer rule: no imports from api/ or projects/.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import replace

from auth.models import Identity, Session

logger = logging.getLogger("ubiquitous.auth.sessions")

_DEFAULT_TTL = 60 * 60 * 24  # 24 hours in seconds


class SessionAuthority:
    """Issue, resolve, refresh and revoke sessions.

    Usage:
        sessions = SessionAuthority(ttl_seconds=3600)
        session = sessions.create(identity)
        sessions.resolve(session.handle)   # -> Identity or None
        sessions.destroy(session.handle)
    """

    def __init__(self, ttl_seconds: int = _DEFAULT_TTL, clock: Callable[[], float] = time.time) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, identity: Identity) -> Session:
        """Start a new session for identity and return it.

        The identity is copied, so the session keeps the values it had at
        login even if the caller's object is later replaced.
        """
        now = self._clock()
        handle = secrets.token_urlsafe(32)
        session = Session(
            handle=handle,
            identity=replace(identity),
            created_at=now,
            expires_at=now + self.ttl,
        )
        with self._lock:
            self._sessions[handle] = session
        logger.info("Session created for user id=%s", identity.id)
        return session

    def get(self, handle: str) -> Session | None:
        """Return the live Session for handle, or None if unknown or expired."""
        if not handle:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(handle)
            if session is None:
                return None
            if session.is_expired(now):
                del self._sessions[handle]
                return None
            return session

    def resolve(self, handle: str) -> Identity | None:
        session = self.get(handle)
        return session.identity if session is not None else None

    def refresh(self, handle: str) -> bool:
        """Push expiry out by a full TTL. Returns False for unknown/expired handles."""
        now = self._clock()
        with self._lock:
            session = self._sessions.get(handle)
            if session is None or session.is_expired(now):
                self._sessions.pop(handle, None)
                return False
            session.expires_at = now + self.ttl
            return True

    def destroy(self, handle: str | None) -> None:
        """Forget a session. Unknown or empty handles are ignored."""
        if not handle:
            return
        with self._lock:
            self._sessions.pop(handle, None)

    def destroy_for_user(self, user_id: int) -> int:
        """Revoke every session belonging to user_id. Returns the number removed."""
        with self._lock:
            doomed = [h for h, s in self._sessions.items() if s.identity.id == user_id]
            for handle in doomed:
                del self._sessions[handle]
        if doomed:
            logger.info("Revoked %d session(s) for user id=%s", len(doomed), user_id)
        return len(doomed)

    def purge_expired(self) -> int:
        """Delete all expired sessions. Returns number removed."""
        now = self._clock()
        with self._lock:
            expired = [h for h, s in self._sessions.items() if s.is_expired(now)]
            for handle in expired:
                del self._sessions[handle]
        return len(expired)

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)
