from __future__ import annotations

import logging
import re

from flask import Blueprint
from werkzeug.security import generate_password_hash, check_password_hash

from storefront.app.extensions import db, storefronts
from storefront.app.models import Account
from storefront.app.common.validation import get_json, require_fields
from storefront.app.common.errors import abort_json

bp = Blueprint("auth", __name__)
logger = logging.getLogger(__name__)

EMAIL_REGEX = r'^[^\s@]+@[^\s@]+\.[^\s@]{2,}$'


def get_password_errors(password):
    errors = []

    if len(password) < 8:
        errors.append("Password must be at least 8 characters")

    if not re.search(r"[A-Za-z]", password):
        errors.append("Password must include one letter")

    if not re.search(r"[0-9]", password):
        errors.append("Password must include one number")

    return errors


def _session_response(sf, status=200):
    account = None
    if sf.gate.uid:
        account = db.session.get(Account, int(sf.gate.uid))
    return {
        "session": {**sf.state.to_dict(), "role_pending": sf.gate.role_pending},
        "user": account.to_dict() if account else None,
    }, status


@bp.post("/auth/signup")
def signup():
    """POST /api/auth/signup - Create an account and sign it in."""
    data = get_json()
    require_fields(data, ["email", "password"])

    email = str(data["email"]).strip().lower()
    if not re.match(EMAIL_REGEX, email):
        abort_json(400, "validation_error", "Invalid email format")

    password_errors = get_password_errors(str(data["password"]))
    if password_errors:
        abort_json(400, "validation_error", " ".join(password_errors), {"password": password_errors})

    if Account.query.filter_by(email=email).first():
        abort_json(409, "conflict", "Email already registered")

    # New accounts are always plain users; admins are promoted out of band
    account = Account(
        email=email,
        password_hash=generate_password_hash(str(data["password"])),
        display_name=(data.get("display_name") or "").strip() or None,
        role="user",
    )
    db.session.add(account)
    db.session.commit()
    logger.info("account %s registered", account.id)

    return _session_response(storefronts.sign_in(account), 201)


@bp.post("/auth/signin")
def signin():
    """POST /api/auth/signin - Check credentials and start a session."""
    data = get_json()
    require_fields(data, ["email", "password"])

    email = str(data["email"]).strip().lower()
    account = Account.query.filter_by(email=email).first()
    if not account or not check_password_hash(account.password_hash, str(data["password"])):
        abort_json(401, "unauthorized", "Invalid email or password")

    return _session_response(storefronts.sign_in(account))


@bp.post("/auth/signout")
def signout():
    """POST /api/auth/signout - Terminate session."""
    return _session_response(storefronts.sign_out())


@bp.get("/auth/session")
def current_session():
    """GET /api/auth/session - Current authentication and role state."""
    return _session_response(storefronts.current())
