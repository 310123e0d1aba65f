from __future__ import annotations

import re

from flask import Blueprint
from sqlalchemy import func

from storefront.app.extensions import db
from storefront.app.models import Account, ContactMessage, Order, Product
from storefront.app.common.auth import admin_required
from storefront.app.common.errors import abort_json
from storefront.app.common.validation import get_json, require_fields
from storefront.modules.auth.routes import EMAIL_REGEX

bp = Blueprint("admin", __name__)


def dashboard_stats():
    revenue = db.session.query(func.coalesce(func.sum(Order.total_cents), 0)).scalar()
    return {
        "products": Product.query.filter_by(is_active=True).count(),
        "accounts": Account.query.count(),
        "orders": Order.query.count(),
        "messages": ContactMessage.query.count(),
        "revenue_cents": int(revenue or 0),
    }


def recent_messages(limit: int = 100):
    return (
        ContactMessage.query.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc())
        .limit(limit)
        .all()
    )


@bp.post("/messages")
def post_message():
    """POST /api/messages - Contact form."""
    data = get_json()
    require_fields(data, ["name", "email", "body"])

    email = str(data["email"]).strip().lower()
    if not re.match(EMAIL_REGEX, email):
        abort_json(400, "validation_error", "Invalid email format")

    body = str(data["body"]).strip()
    if not body:
        abort_json(400, "validation_error", "Message cannot be empty")

    m = ContactMessage(name=str(data["name"]).strip(), email=email, body=body)
    db.session.add(m)
    db.session.commit()
    return {"id": m.id}, 201


@bp.get("/messages")
@admin_required
def list_messages():
    return {"items": [m.to_dict() for m in recent_messages()]}, 200


@bp.get("/admin/stats")
@admin_required
def stats():
    return dashboard_stats(), 200
