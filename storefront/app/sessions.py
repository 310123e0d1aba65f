"""Flask glue for per-visitor storefront sessions.

The signed session cookie only carries an opaque storefront id and the
signed-in account id; cart and role state live in the registry.
"""

from __future__ import annotations

import atexit
import logging
import weakref

from flask import Flask, current_app, session

from storefront.core.identity import IdentityUser
from storefront.core.state import SessionRegistry, StorefrontSession

logger = logging.getLogger(__name__)

SID_KEY = "storefront_id"
USER_KEY = "user_id"


def identity_user(account) -> IdentityUser:
    return IdentityUser(uid=str(account.id), email=account.email)


def close_at_exit(registry: SessionRegistry) -> None:
    """Close `registry` at interpreter exit unless it was collected first."""
    ref = weakref.ref(registry)

    def _close() -> None:
        live = ref()
        if live is not None:
            live.close()

    atexit.register(_close)


class Storefront:
    def __init__(self, app: Flask | None = None) -> None:
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        from storefront.modules.auth.profiles import AccountProfileStore

        registry = SessionRegistry(
            AccountProfileStore,
            idle_timeout=app.config.get("STOREFRONT_IDLE_TIMEOUT", 3600),
            sweep_interval=app.config.get("STOREFRONT_SWEEP_INTERVAL", 60),
        )
        app.extensions["storefront"] = registry
        close_at_exit(registry)

    @property
    def registry(self) -> SessionRegistry:
        return current_app.extensions["storefront"]

    def current(self) -> StorefrontSession:
        """The visitor's storefront session, created on first use."""
        registry = self.registry
        sf = registry.get(session.get(SID_KEY))
        if sf is None:
            sid, sf = registry.create()
            session[SID_KEY] = sid
            self._restore_identity(sf)
        return sf

    def _restore_identity(self, sf: StorefrontSession) -> None:
        # The cookie can outlive the registry (restart, idle eviction)
        from storefront.app.extensions import db
        from storefront.app.models import Account

        user_id = session.get(USER_KEY)
        if not user_id:
            return
        account = db.session.get(Account, user_id)
        if account is None:
            session.pop(USER_KEY, None)
            return
        logger.info("restoring sign-in for account %s", account.id)
        sf.sign_in(identity_user(account))

    def sign_in(self, account) -> StorefrontSession:
        sf = self.current()
        session[USER_KEY] = account.id
        sf.sign_in(identity_user(account))
        return sf

    def sign_out(self) -> StorefrontSession:
        sf = self.current()
        session.pop(USER_KEY, None)
        sf.sign_out()
        return sf
