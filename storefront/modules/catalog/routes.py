from __future__ import annotations

import logging

from flask import Blueprint, current_app, request
from sqlalchemy import or_

from storefront.app.extensions import db
from storefront.app.models import Product
from storefront.app.common.errors import abort_json
from storefront.app.common.validation import get_bool, get_json, get_str, parse_price_cents, require_fields
from storefront.app.common.auth import login_required, admin_required

bp = Blueprint("catalog", __name__)
logger = logging.getLogger(__name__)


def search_products(term: str = "", category: str = "", limit: int | None = None, offset: int = 0):
    """Active products matching `term` in name, description or category."""
    q = Product.query.filter_by(is_active=True)

    term = (term or "").strip()
    if term:
        like = f"%{term}%"
        q = q.filter(
            or_(
                Product.name.ilike(like),
                Product.description.ilike(like),
                Product.category.ilike(like),
            )
        )

    category = (category or "").strip()
    if category:
        q = q.filter(db.func.lower(Product.category) == category.lower())

    if limit is None:
        limit = current_app.config["SEARCH_LIMIT"]
    return q.order_by(Product.id.asc()).offset(offset).limit(limit).all()


def get_active_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if not p or not p.is_active:
        abort_json(404, "not_found", "Product not found")
    return p


def _price_from(data) -> int:
    if data.get("price_cents") is not None:
        try:
            cents = int(data["price_cents"])
        except (TypeError, ValueError):
            abort_json(400, "validation_error", "price_cents must be an integer")
    else:
        cents = parse_price_cents(data.get("price"))
    if cents < 0:
        abort_json(400, "validation_error", "Price cannot be negative")
    return cents


@bp.get("/products")
def list_products():
    """GET /api/products - Active products.

    Query params:
      - q: search text
      - category
      - limit, offset
    """
    try:
        limit = min(int(request.args.get("limit", current_app.config["SEARCH_LIMIT"])), 100)
        offset = max(int(request.args.get("offset", "0")), 0)
    except ValueError:
        abort_json(400, "validation_error", "limit/offset must be integers")

    items = search_products(request.args.get("q", ""), request.args.get("category", ""), limit, offset)
    return {
        "items": [p.to_dict() for p in items],
        "pagination": {"limit": limit, "offset": offset, "count": len(items)},
    }, 200


@bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    """GET /api/products/<id> - Product details."""
    return get_active_product(product_id).to_dict(), 200


@bp.post("/products")
@login_required
def create_product():
    """POST /api/products - Add a product (the "ajout" form)."""
    data = get_json()
    require_fields(data, ["name"])
    if data.get("price") is None and data.get("price_cents") is None:
        abort_json(400, "validation_error", "Missing required fields", {"missing": ["price"]})

    p = Product(
        name=get_str(data, "name", required=True),
        description=get_str(data, "description"),
        category=get_str(data, "category") or "General",
        price_cents=_price_from(data),
        image_url=get_str(data, "image_url"),
    )
    db.session.add(p)
    db.session.commit()
    logger.info("product %s created", p.id)
    return p.to_dict(), 201


@bp.patch("/products/<int:product_id>")
@admin_required
def patch_product(product_id: int):
    data = get_json()
    p = db.session.get(Product, product_id)
    if not p:
        abort_json(404, "not_found", "Product not found")

    changes = {}
    for key in ["name", "category"]:
        if key in data:
            changes[key] = get_str(data, key, required=True)
    for key in ["description", "image_url"]:
        if key in data:
            changes[key] = get_str(data, key)
    if "is_active" in data:
        changes["is_active"] = get_bool(data, "is_active")
    if "price" in data or "price_cents" in data:
        changes["price_cents"] = _price_from(data)

    for key, value in changes.items():
        setattr(p, key, value)

    db.session.commit()
    return p.to_dict(), 200


@bp.delete("/products/<int:product_id>")
@admin_required
def delete_product(product_id: int):
    """Soft delete: orders keep pointing at the row."""
    p = db.session.get(Product, product_id)
    if not p:
        return {"message": "no_op"}, 200

    p.is_active = False
    db.session.commit()
    logger.info("product %s deactivated", p.id)
    return {"id": p.id, "is_active": p.is_active}, 200
