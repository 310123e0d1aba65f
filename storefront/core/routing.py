"""Route table, route guard and header selection."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from storefront.core.cart import CartSummary
from storefront.core.session import SessionState

SIGNIN_PATH = "/signin"


class Capability(str, enum.Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


@dataclass(frozen=True)
class Route:
    path: str
    view: str
    capability: Capability = Capability.PUBLIC


ROUTE_TABLE: Tuple[Route, ...] = (
    Route("/", "home"),
    Route("/contact", "contact"),
    Route("/signin", "signin"),
    Route("/signup", "signup"),
    Route("/about", "about"),
    Route("/categories", "categories"),
    Route("/cart", "cart"),
    Route("/payment", "payment"),
    Route("/confirmation", "confirmation"),
    Route("/search", "search"),
    Route("/profil", "profile", Capability.AUTHENTICATED),
    Route("/ajout", "ajout", Capability.AUTHENTICATED),
    Route("/admin/products", "admin_products", Capability.ADMIN),
    Route("/admin/dashboard", "admin_dashboard", Capability.ADMIN),
    Route("/admin/messages", "admin_messages", Capability.ADMIN),
)


def active_routes(state: SessionState, table: Tuple[Route, ...] = ROUTE_TABLE) -> Dict[str, Route]:
    """Routes registered for this session; admin routes exist only for admins."""
    return {
        route.path: route
        for route in table
        if route.capability is not Capability.ADMIN or state.is_admin
    }


class Outcome(str, enum.Enum):
    RENDER = "render"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Resolution:
    outcome: Outcome
    route: Optional[Route] = None
    location: Optional[str] = None


def guard(state: SessionState, route: Route) -> Resolution:
    """Send anonymous visitors of protected routes to the sign-in view."""
    if route.capability is not Capability.PUBLIC and not state.is_authenticated:
        return Resolution(Outcome.REDIRECT, route, SIGNIN_PATH)
    return Resolution(Outcome.RENDER, route)


def resolve(path: str, state: SessionState, table: Tuple[Route, ...] = ROUTE_TABLE) -> Resolution:
    route = active_routes(state, table).get(path)
    if route is None:
        return Resolution(Outcome.NOT_FOUND)
    return guard(state, route)


def compose_header(state: SessionState, summary: CartSummary) -> Dict[str, Any]:
    if state.is_admin:
        return {"variant": "admin"}
    return {"variant": "standard", "cart": summary.to_dict()}
