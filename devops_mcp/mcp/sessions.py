"""
Session store for MCP clients.

Sessions are keyed by an opaque token carried in the ``mcp-session-id``
header. The store adopts any caller-supplied identifier it does not know and
mints a fresh one when none is supplied. Idle sessions expire after a TTL and
the number retained is capped, evicting the least recently seen first.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

logger = logging.getLogger("DevOpsMCP.mcp.sessions")

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_session_id() -> str:
    """Random token with a base-36 millisecond timestamp suffix."""
    return secrets.token_hex(16) + _to_base36(int(time.time() * 1000))


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass
class Session:
    id: str
    initialized: bool = False
    created_at: str = field(default_factory=utc_now_iso)
    last_seen_epoch: float = field(default_factory=time.time)


class SessionStore:
    """
    Process-wide mapping from session id to :class:`Session`.

    All reads and writes of the mapping and of each session's mutable fields
    happen under a single lock. The mapping is kept in last-seen order so
    expiry and the retention cap only ever inspect the oldest entries.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = 3600.0,
        max_retained: Optional[int] = 10000,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_retained = max_retained
        self._clock = clock
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()

    def get_or_create(self, session_id: Optional[str] = None) -> Session:
        """Return the session for ``session_id``, creating it if needed. Never fails."""
        with self._lock:
            now = self._clock()
            self._purge_expired_locked(now)

            if not session_id:
                session_id = self._new_id_locked()

            session = self._sessions.get(session_id)
            if session is None:
                session = Session(id=session_id, last_seen_epoch=now)
                self._sessions[session_id] = session
                logger.debug("Created session %s", session_id)
                self._enforce_retention_locked(keep=session_id)
            else:
                session.last_seen_epoch = now
                self._sessions.move_to_end(session_id)
            return session

    def get(self, session_id: str) -> Optional[Session]:
        """Look up a live session without creating or touching it."""
        with self._lock:
            self._purge_expired_locked(self._clock())
            return self._sessions.get(session_id)

    def mark_initialized(self, session: Session) -> bool:
        """Promote ``session`` to initialized. Returns True only for the call that flipped it.

        The session is touched as well, and put back if a purge or eviction
        dropped it after it was resolved, so the promotion is never lost.
        """
        with self._lock:
            current = self._sessions.get(session.id)
            if current is None:
                self._sessions[session.id] = session
                logger.debug("Reinstated session %s", session.id)
                self._enforce_retention_locked(keep=session.id)
            if current is None or current is session:
                session.last_seen_epoch = self._clock()
                self._sessions.move_to_end(session.id)
            if session.initialized:
                return False
            session.initialized = True
            return True

    def purge_expired(self, now: Optional[float] = None) -> int:
        """Evict idle sessions. Returns the number removed."""
        with self._lock:
            return self._purge_expired_locked(self._clock() if now is None else now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    # --- Locked helpers ---

    def _new_id_locked(self) -> str:
        session_id = self._id_factory()
        while session_id in self._sessions:
            session_id = self._id_factory()
        return session_id

    def _purge_expired_locked(self, now: float) -> int:
        if self.ttl_seconds is None:
            return 0
        cutoff = now - self.ttl_seconds
        removed = 0
        while self._sessions:
            oldest_id, oldest = next(iter(self._sessions.items()))
            if oldest.last_seen_epoch > cutoff:
                break
            self._sessions.popitem(last=False)
            removed += 1
            logger.debug("Expired idle session %s", oldest_id)
        if removed:
            logger.info("Purged %d idle session(s); %d retained", removed, len(self._sessions))
        return removed

    def _enforce_retention_locked(self, keep: str) -> None:
        if self.max_retained is None:
            return
        while len(self._sessions) > self.max_retained:
            oldest_id = next(iter(self._sessions))
            if oldest_id == keep:
                break
            self._sessions.popitem(last=False)
            logger.info("Evicted session %s (retention cap %d)", oldest_id, self.max_retained)
