"""In-memory shopping cart.

Cart state is an ordered tuple of :class:`CartItem`. The module-level
functions are pure reducers ``(items, ...) -> items``; :class:`CartStore`
holds the current tuple for one storefront session and notifies listeners
after every mutation.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Mapping, Tuple

CENTS = Decimal("0.01")

# Keys copied onto CartItem attributes; anything else in the product mapping
# travels along in `fields`.
_CORE_KEYS = ("id", "price", "price_cents", "quantity", "name")


def to_price(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class CartItem:
    id: Any
    price: Decimal
    quantity: int = 1
    name: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_product(cls, product: Mapping[str, Any]) -> "CartItem":
        """Build a line item with quantity 1.

        Accepts either a ``price`` (units) or a ``price_cents`` key.
        """
        if "price" in product:
            price = to_price(product["price"])
        else:
            price = Decimal(int(product["price_cents"])) / 100
        extra = {k: v for k, v in product.items() if k not in _CORE_KEYS}
        return cls(id=product["id"], price=price, quantity=1, name=product.get("name", ""), fields=extra)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.fields,
            "id": self.id,
            "name": self.name,
            "price": format_amount(self.price),
            "quantity": self.quantity,
            "line_total": format_amount(self.line_total),
        }


@dataclass(frozen=True)
class CartSummary:
    count: int
    total: str

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "total": self.total}


Items = Tuple[CartItem, ...]


def format_amount(amount: Decimal) -> str:
    return str(amount.quantize(CENTS, rounding=ROUND_HALF_UP))


def add_to_cart(items: Items, product: Mapping[str, Any]) -> Items:
    product_id = product["id"]
    if any(item.id == product_id for item in items):
        return tuple(
            replace(item, quantity=item.quantity + 1) if item.id == product_id else item
            for item in items
        )
    return items + (CartItem.from_product(product),)


def update_quantity(items: Items, item_id: Any, new_quantity: int) -> Items:
    quantity = max(1, int(new_quantity))
    return tuple(
        replace(item, quantity=quantity) if item.id == item_id else item
        for item in items
    )


def remove_from_cart(items: Items, item_id: Any) -> Items:
    return tuple(item for item in items if item.id != item_id)


def clear_cart(items: Items) -> Items:
    return ()


def get_summary(items: Items) -> CartSummary:
    count = sum(item.quantity for item in items)
    total = sum((item.line_total for item in items), Decimal("0"))
    return CartSummary(count=count, total=format_amount(total))


Listener = Callable[["CartStore"], None]


class CartStore:
    """Holds one cart and applies the reducers above to it.

    Mutations are serialized; requests from one browser can arrive on
    several threads at once.
    """

    def __init__(self, items: Items = ()) -> None:
        self._items: Items = tuple(items)
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    @property
    def items(self) -> Items:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: Any) -> CartItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, reducer: Callable[..., Items], *args: Any) -> Items:
        with self._lock:
            self._items = reducer(self._items, *args)
            for listener in list(self._listeners):
                listener(self)
            return self._items

    def add_to_cart(self, product: Mapping[str, Any]) -> Items:
        return self.dispatch(add_to_cart, product)

    def update_quantity(self, item_id: Any, new_quantity: int) -> Items:
        return self.dispatch(update_quantity, item_id, new_quantity)

    def remove_from_cart(self, item_id: Any) -> Items:
        return self.dispatch(remove_from_cart, item_id)

    def clear_cart(self) -> Items:
        return self.dispatch(clear_cart)

    def get_summary(self) -> CartSummary:
        return get_summary(self._items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self._items],
            "summary": self.get_summary().to_dict(),
        }
