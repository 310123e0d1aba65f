"""Profile documents served from the accounts table."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from storefront.app.extensions import db
from storefront.app.models import Account
from storefront.core.identity import (
    MISSING,
    Document,
    StoreNetworkError,
    StorePermissionError,
)
from storefront.core.session import USERS_COLLECTION


class AccountProfileStore:
    """Read-only document view of `accounts` keyed by account id."""

    def get_document(self, collection: str, doc_id: str) -> Document:
        if collection != USERS_COLLECTION:
            raise StorePermissionError(f"collection {collection!r} is not readable")
        try:
            account_id = int(doc_id)
        except (TypeError, ValueError):
            return MISSING

        try:
            account = db.session.get(Account, account_id)
        except OperationalError as exc:
            raise StoreNetworkError(str(exc)) from exc
        except SQLAlchemyError as exc:
            raise StoreNetworkError(f"profile lookup failed: {exc.__class__.__name__}") from exc

        if account is None:
            return MISSING
        return Document(exists=True, payload={"email": account.email, "role": account.role})
