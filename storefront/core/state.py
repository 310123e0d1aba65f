"""Per-browser storefront state and the registry that owns it."""

from __future__ import annotations

import logging
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from storefront.core.cart import CartStore
from storefront.core.identity import DocumentStore, IdentityUser, SessionIdentity
from storefront.core.session import IdentityGate, SessionState

logger = logging.getLogger(__name__)


class StorefrontSession:
    """One cart and one identity gate for a single visitor.

    The gate's subscription is held from ``start()`` until ``close()``.
    """

    def __init__(self, profiles: DocumentStore, clock: Callable[[], float] = time.monotonic) -> None:
        self.identity = SessionIdentity()
        self.gate = IdentityGate(self.identity, profiles)
        self.cart = CartStore()
        self.last_order_id: Optional[int] = None
        self._clock = clock
        self.last_seen = clock()

    @property
    def state(self) -> SessionState:
        return self.gate.state

    def touch(self) -> None:
        self.last_seen = self._clock()

    def start(self) -> "StorefrontSession":
        self.gate.start()
        return self

    def close(self) -> None:
        self.gate.close()

    def __enter__(self) -> "StorefrontSession":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def sign_in(self, user: IdentityUser) -> SessionState:
        self.identity.sign_in(user)
        return self.state

    def sign_out(self) -> SessionState:
        self.identity.sign_out()
        return self.state


class SessionRegistry:
    """Process-wide map of session id -> StorefrontSession.

    Sessions idle for longer than ``idle_timeout`` seconds are closed and
    dropped. Lookups sweep at most once every ``sweep_interval`` seconds.
    """

    def __init__(
        self,
        profiles_factory: Callable[[], DocumentStore],
        idle_timeout: float = 3600,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60,
    ) -> None:
        self._profiles_factory = profiles_factory
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._last_sweep = clock()
        self._sessions: Dict[str, StorefrontSession] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, sid: str) -> bool:
        return sid in self._sessions

    def get(self, sid: Optional[str]) -> Optional[StorefrontSession]:
        if self._clock() - self._last_sweep >= self.sweep_interval:
            self.sweep()
        if not sid:
            return None
        with self._lock:
            session = self._sessions.get(sid)
        if session is not None:
            session.touch()
        return session

    def create(self) -> Tuple[str, StorefrontSession]:
        if self._closed:
            raise RuntimeError("session registry is closed")
        sid = secrets.token_urlsafe(24)
        session = StorefrontSession(self._profiles_factory(), clock=self._clock).start()
        with self._lock:
            self._sessions[sid] = session
        logger.debug("storefront session %s created", sid[:8])
        return sid, session

    def discard(self, sid: str) -> None:
        with self._lock:
            session = self._sessions.pop(sid, None)
        if session is not None:
            session.close()

    def sweep(self) -> int:
        now = self._clock()
        cutoff = now - self.idle_timeout
        with self._lock:
            self._last_sweep = now
            stale = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
            expired = [self._sessions.pop(sid) for sid in stale]
        for session in expired:
            session.close()
        if expired:
            logger.info("evicted %d idle storefront sessions", len(expired))
        return len(expired)

    def close(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._closed = True
        for session in sessions:
            session.close()
        if sessions:
            logger.info("closed %d storefront sessions", len(sessions))
