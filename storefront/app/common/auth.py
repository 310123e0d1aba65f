"""Capability checks for API endpoints.

Pages go through the route guard in `storefront.core.routing`; API calls
answer 401/403 JSON instead of redirecting.
"""

from functools import wraps
from typing import Callable, TypeVar, Any

from storefront.app.common.errors import abort_json
from storefront.app.extensions import storefronts

F = TypeVar("F", bound=Callable[..., Any])


def login_required(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not storefronts.current().state.is_authenticated:
            abort_json(401, "unauthorized", "Authentication required")
        return fn(*args, **kwargs)

    return wrapper  # type: ignore


def admin_required(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        state = storefronts.current().state
        if not state.is_authenticated:
            abort_json(401, "unauthorized", "Authentication required")
        if not state.is_admin:
            abort_json(403, "forbidden", "Admin role required")
        return fn(*args, **kwargs)

    return wrapper  # type: ignore
