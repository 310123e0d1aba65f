"""Storefront pages.

Every path in the route table is mounted here. A request is resolved
against the visitor's session first (not found / redirect to sign-in /
render), then answered with a JSON page payload: header, session and
view data.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Callable, Dict

from flask import Blueprint, abort, redirect, request

from storefront.app.extensions import db, storefronts
from storefront.app.models import Account, Order, Product
from storefront.core.routing import ROUTE_TABLE, Outcome, compose_header, resolve
from storefront.core.state import StorefrontSession
from storefront.modules.admin.routes import dashboard_stats, recent_messages
from storefront.modules.catalog.routes import search_products

bp = Blueprint("pages", __name__)

ViewBuilder = Callable[[StorefrontSession], Dict[str, Any]]
VIEWS: Dict[str, ViewBuilder] = {}


def view(name: str):
    def decorator(fn: ViewBuilder) -> ViewBuilder:
        VIEWS[name] = fn
        return fn

    return decorator


def _cart_items(sf: StorefrontSession):
    return [item.to_dict() for item in sf.cart.items]


@view("home")
def home(sf):
    featured = Product.query.filter_by(is_active=True).order_by(Product.id.asc()).limit(4).all()
    return {"featured": [p.to_dict() for p in featured]}


@view("categories")
def categories(sf):
    grouped: Dict[str, list] = OrderedDict()
    products = Product.query.filter_by(is_active=True).order_by(Product.category.asc(), Product.id.asc()).all()
    for p in products:
        grouped.setdefault(p.category, []).append(p.to_dict())
    return {
        "categories": [{"name": name, "products": items} for name, items in grouped.items()],
        "cart_items": _cart_items(sf),
    }


@view("search")
def search(sf):
    term = (request.args.get("q") or "").strip()
    results = search_products(term, request.args.get("category", "")) if term else []
    return {
        "query": term,
        "results": [p.to_dict() for p in results],
        "cart_items": _cart_items(sf),
        "is_authenticated": sf.state.is_authenticated,
    }


@view("cart")
def cart(sf):
    return sf.cart.to_dict()


@view("payment")
def payment(sf):
    return {"summary": sf.cart.get_summary().to_dict()}


@view("confirmation")
def confirmation(sf):
    order = db.session.get(Order, sf.last_order_id) if sf.last_order_id else None
    return {"order": order.to_dict() if order else None}


@view("profile")
def profile(sf):
    account = db.session.get(Account, int(sf.gate.uid))
    orders = Order.query.filter_by(account_id=account.id).order_by(Order.id.desc()).limit(10).all() if account else []
    return {
        "account": account.to_dict() if account else None,
        "orders": [o.to_dict() for o in orders],
    }


@view("ajout")
def ajout(sf):
    rows = db.session.query(Product.category).distinct().order_by(Product.category.asc()).all()
    return {
        "categories": [r[0] for r in rows],
        "fields": ["name", "description", "category", "price", "image_url"],
    }


@view("admin_products")
def admin_products(sf):
    return {"products": [p.to_dict() for p in Product.query.order_by(Product.id.asc()).all()]}


@view("admin_dashboard")
def admin_dashboard(sf):
    return {"stats": dashboard_stats()}


@view("admin_messages")
def admin_messages(sf):
    return {"messages": [m.to_dict() for m in recent_messages()]}


def compose_page(sf: StorefrontSession, route) -> Dict[str, Any]:
    state = sf.state
    builder = VIEWS.get(route.view)
    return {
        "path": route.path,
        "view": route.view,
        "header": compose_header(state, sf.cart.get_summary()),
        "session": {**state.to_dict(), "role_pending": sf.gate.role_pending},
        "data": builder(sf) if builder else {},
    }


def show_page():
    sf = storefronts.current()
    resolution = resolve(request.path, sf.state)
    if resolution.outcome is Outcome.NOT_FOUND:
        abort(404)
    if resolution.outcome is Outcome.REDIRECT:
        return redirect(resolution.location)
    return compose_page(sf, resolution.route), 200


for _route in ROUTE_TABLE:
    bp.add_url_rule(_route.path, endpoint=_route.view, view_func=show_page, methods=["GET"])
