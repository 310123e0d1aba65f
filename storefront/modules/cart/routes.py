from __future__ import annotations

from flask import Blueprint

from storefront.app.extensions import storefronts
from storefront.app.common.validation import get_json, get_int
from storefront.modules.catalog.routes import get_active_product

bp = Blueprint("cart", __name__)

# Cart line items are keyed by product id. Unknown ids are no-ops, not errors.


def _cart_response(status=200):
    return storefronts.current().cart.to_dict(), status


@bp.get("/cart")
def get_cart():
    return _cart_response()


@bp.post("/cart/items")
def add_to_cart():
    """Add one unit of a product; repeated adds bump the quantity."""
    data = get_json()
    product = get_active_product(get_int(data, "product_id"))
    storefronts.current().cart.add_to_cart(product.to_cart_product())
    return _cart_response(201)


@bp.put("/cart/items/<int:product_id>")
def update_cart_item(product_id: int):
    """Set a quantity; anything below 1 is stored as 1."""
    data = get_json()
    storefronts.current().cart.update_quantity(product_id, get_int(data, "quantity"))
    return _cart_response()


@bp.delete("/cart/items/<int:product_id>")
def remove_cart_item(product_id: int):
    storefronts.current().cart.remove_from_cart(product_id)
    return _cart_response()


@bp.delete("/cart")
def clear_cart():
    storefronts.current().cart.clear_cart()
    return _cart_response()
