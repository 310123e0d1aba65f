"""Session state derived from the identity provider.

`IdentityGate` turns provider notifications into a :class:`SessionState`.
A signed-in user is authenticated at once; admin rights are granted only
after that user's profile document has been read and validated. Any failure
along the way leaves the session non-admin.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from storefront.core.identity import (
    Document,
    DocumentStore,
    DocumentStoreError,
    IdentityProvider,
    IdentityUser,
    Subscription,
)

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


@dataclass(frozen=True)
class SessionState:
    is_authenticated: bool = False
    is_admin: bool = False

    def __post_init__(self) -> None:
        if self.is_admin and not self.is_authenticated:
            raise ValueError("an admin session must be authenticated")

    def to_dict(self) -> dict:
        return {"is_authenticated": self.is_authenticated, "is_admin": self.is_admin}


ANONYMOUS = SessionState()
MEMBER = SessionState(is_authenticated=True)
ADMIN = SessionState(is_authenticated=True, is_admin=True)


class Role(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True)
class UserProfile:
    role: Role = Role.USER

    @classmethod
    def from_document(cls, doc: Document) -> "UserProfile":
        """Validate a raw profile document; anything unexpected is a plain user."""
        if not doc.exists:
            return cls()
        data: Any = doc.data()
        if not isinstance(data, dict):
            logger.warning("profile document is not a mapping: %r", type(data).__name__)
            return cls()
        raw = data.get("role")
        if raw is None:
            return cls()
        try:
            return cls(role=Role(raw))
        except ValueError:
            logger.warning("unknown role %r in profile document", raw)
            return cls()


StateListener = Callable[[SessionState], None]


class IdentityGate:
    """Keeps a SessionState in step with an identity provider.

    Use as a context manager, or call ``start()`` and ``close()`` yourself.
    """

    def __init__(self, provider: IdentityProvider, profiles: DocumentStore) -> None:
        self._provider = provider
        self._profiles = profiles
        self._subscription: Optional[Subscription] = None
        self._state = ANONYMOUS
        self._uid: Optional[str] = None
        self._role_pending = False
        self._listeners: List[StateListener] = []
        # Held across a whole notification, including the role lookup
        self._lock = threading.RLock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def uid(self) -> Optional[str]:
        return self._uid

    @property
    def role_pending(self) -> bool:
        return self._role_pending

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> "IdentityGate":
        if self._subscription is None:
            self._subscription = self._provider.subscribe(self._on_session_change)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def __enter__(self) -> "IdentityGate":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _on_session_change(self, user: Optional[IdentityUser]) -> None:
        with self._lock:
            self._apply_session(user)

    def _apply_session(self, user: Optional[IdentityUser]) -> None:
        if user is None:
            self._uid = None
            self._role_pending = False
            self._set_state(ANONYMOUS)
            return

        self._uid = user.uid
        self._role_pending = True
        self._set_state(MEMBER)

        profile = self._lookup_profile(user.uid)
        # A sign-out or a different sign-in may have landed during the lookup.
        if self._uid != user.uid:
            return
        self._role_pending = False
        self._set_state(ADMIN if profile.role is Role.ADMIN else MEMBER)

    def _lookup_profile(self, uid: str) -> UserProfile:
        try:
            doc = self._profiles.get_document(USERS_COLLECTION, uid)
        except DocumentStoreError as exc:
            logger.warning("role lookup failed for uid=%s: %s", uid, exc)
            return UserProfile()
        except Exception:
            logger.exception("role lookup crashed for uid=%s", uid)
            return UserProfile()
        return UserProfile.from_document(doc)
