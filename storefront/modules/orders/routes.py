from __future__ import annotations

import logging
from decimal import Decimal

from flask import Blueprint, current_app

from storefront.app.extensions import db, storefronts
from storefront.app.models import Order, OrderItem
from storefront.app.common.auth import login_required
from storefront.app.common.validation import get_json, require_fields
from storefront.app.common.errors import abort_json
from storefront.modules.orders.payments import CardDetails, CardPaymentGateway, PaymentDeclined

bp = Blueprint("orders", __name__)
logger = logging.getLogger(__name__)


def payment_gateway() -> CardPaymentGateway:
    return current_app.extensions.setdefault("payment_gateway", CardPaymentGateway())


def _account_id(sf):
    return int(sf.gate.uid) if sf.state.is_authenticated and sf.gate.uid else None


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value())


@bp.post("/payment")
def pay():
    """Checkout: charge the cart total, record the order, empty the cart.

    Request JSON:
      {"card": {"holder", "number", "exp_month", "exp_year", "cvc"}}
    """
    data = get_json()
    require_fields(data, ["card"])
    if not isinstance(data["card"], dict):
        abort_json(400, "validation_error", "card must be an object")

    sf = storefronts.current()
    items = sf.cart.items
    if not items:
        abort_json(409, "cart_empty", "Cart is empty")

    amount_cents = _to_cents(Decimal(sf.cart.get_summary().total))
    try:
        receipt = payment_gateway().charge(amount_cents, CardDetails.from_dict(data["card"]))
    except PaymentDeclined as exc:
        abort_json(402, "payment_declined", exc.reason, {"field": exc.field} if exc.field else None)

    order = Order(
        account_id=_account_id(sf),
        status="PAID",
        total_cents=receipt.amount_cents,
        payment_reference=receipt.reference,
        card_brand=receipt.brand,
        card_last4=receipt.last4,
    )
    for item in items:
        order.items.append(
            OrderItem(
                product_id=item.id,
                name=item.name,
                quantity=item.quantity,
                unit_price_cents=_to_cents(item.price),
            )
        )
    db.session.add(order)
    db.session.commit()
    logger.info("order %s paid ref=%s", order.id, receipt.reference)

    sf.cart.clear_cart()
    sf.last_order_id = order.id
    return order.to_dict(), 201


@bp.get("/orders")
@login_required
def list_orders():
    sf = storefronts.current()
    orders = Order.query.filter_by(account_id=_account_id(sf)).order_by(Order.id.desc()).limit(50).all()
    return {"items": [o.to_dict() for o in orders]}, 200


@bp.get("/orders/<int:order_id>")
def get_order(order_id: int):
    """Visible to its owner, or to the session that just placed it."""
    sf = storefronts.current()
    o = db.session.get(Order, order_id)
    owner = o is not None and o.account_id is not None and o.account_id == _account_id(sf)
    if not o or not (owner or sf.last_order_id == o.id):
        abort_json(404, "not_found", "Order not found")
    return o.to_dict(), 200
