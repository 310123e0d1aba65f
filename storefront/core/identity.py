"""Contracts for the identity provider and the profile document store.

The storefront core only talks to these through the small protocols below.
`SessionIdentity` is the in-process provider used for each browser session.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityUser:
    uid: str
    email: str = ""


SessionCallback = Callable[[Optional[IdentityUser]], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class IdentityProvider(Protocol):
    def subscribe(self, callback: SessionCallback) -> Subscription: ...


class DocumentStoreError(Exception):
    """Base class for failures reading from the document store."""


class StoreNetworkError(DocumentStoreError):
    pass


class StorePermissionError(DocumentStoreError):
    pass


@dataclass(frozen=True)
class Document:
    exists: bool
    payload: Dict[str, Any] = field(default_factory=dict)

    def data(self) -> Dict[str, Any]:
        return dict(self.payload)


MISSING = Document(exists=False)


class DocumentStore(Protocol):
    def get_document(self, collection: str, doc_id: str) -> Document: ...


class _Handle:
    def __init__(self, owner: "SessionIdentity", callback: SessionCallback) -> None:
        self._owner = owner
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._owner._callbacks.remove(self._callback)


class SessionIdentity:
    """Identity provider for a single browser session.

    Sign-in/sign-out calls come from the auth endpoints once credentials have
    been checked. New subscribers are told the current user straight away.
    """

    def __init__(self) -> None:
        self._user: Optional[IdentityUser] = None
        self._callbacks: List[SessionCallback] = []
        self._lock = threading.RLock()

    @property
    def current_user(self) -> Optional[IdentityUser]:
        return self._user

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: SessionCallback) -> _Handle:
        with self._lock:
            self._callbacks.append(callback)
            callback(self._user)
        return _Handle(self, callback)

    def sign_in(self, user: IdentityUser) -> None:
        logger.info("identity: sign in uid=%s", user.uid)
        with self._lock:
            self._user = user
            self._notify()

    def sign_out(self) -> None:
        with self._lock:
            if self._user is not None:
                logger.info("identity: sign out uid=%s", self._user.uid)
            self._user = None
            self._notify()

    def _notify(self) -> None:
        for callback in list(self._callbacks):
            callback(self._user)
