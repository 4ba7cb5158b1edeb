"""
In-memory shopping cart for one shopper session.

A cart holds at most one line per catalog item, in insertion order.
Totals are never cached: every ``snapshot()`` is priced from the
current lines.
"""
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple, Union

from bookhaven.config import settings
from bookhaven.exceptions import AlreadyInCart, InvalidPricingInput
from bookhaven.notifications import CartEvent, dispatch_event
from bookhaven.schemas.catalog_schemas import CatalogItem
from bookhaven.services import pricing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLineItem:
    item: CatalogItem
    rental_days: int

    @property
    def line_total(self) -> float:
        return pricing.line_total(self.item.price, self.rental_days)


@dataclass(frozen=True)
class CartSnapshot:
    lines: Tuple[CartLineItem, ...]
    total_line_count: int
    total_amount: float


def _check_days(days) -> None:
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise InvalidPricingInput(f"Rental days must be a positive integer, got {days!r}")


class CartStore:
    def __init__(self):
        self._lines: List[CartLineItem] = []
        # the last popup payload produced by a mutation, for the UI layer
        self.last_notice: Optional[dict] = None

    def __len__(self):
        return len(self._lines)

    def _find(self, item_id: str) -> Optional[CartLineItem]:
        for line in self._lines:
            if line.item.id == item_id:
                return line
        return None

    def contains(self, item_id: str) -> bool:
        return self._find(item_id) is not None

    def add_item(self, item: CatalogItem, rental_days: Optional[int] = None) -> Union[CartLineItem, AlreadyInCart]:
        if rental_days is None:
            rental_days = settings.default_rental_days
        _check_days(rental_days)

        if self.contains(item.id):
            notice = AlreadyInCart(item.id, item.title)
            logger.warning(f"Book {item.id} already in cart, ignoring add")
            self.last_notice = dispatch_event(
                event=CartEvent.ALREADY_IN_CART,
                message=notice.message,
                related_id=item.id,
            )
            return notice

        line = CartLineItem(item=item, rental_days=rental_days)
        self._lines.append(line)
        self.last_notice = dispatch_event(
            event=CartEvent.ITEM_ADDED,
            message=f"{item.title} added to cart",
            related_id=item.id,
        )
        return line

    def remove_item(self, item_id: str) -> None:
        self._lines = [line for line in self._lines if line.item.id != item_id]
        self.last_notice = dispatch_event(
            event=CartEvent.ITEM_REMOVED,
            message="Item removed from cart",
            related_id=item_id,
        )

    def update_rental_days(self, item_id: str, days: int) -> Optional[CartLineItem]:
        _check_days(days)
        for index, line in enumerate(self._lines):
            if line.item.id == item_id:
                self._lines[index] = replace(line, rental_days=days)
                return self._lines[index]
        return None

    def clear(self) -> None:
        self._lines = []

    def snapshot(self) -> CartSnapshot:
        lines = tuple(self._lines)
        total = pricing.cart_total((line.item.price, line.rental_days) for line in lines)
        return CartSnapshot(
            lines=lines,
            total_line_count=len(lines),
            total_amount=total,
        )


class CartRegistry:
    """
    Owns one CartStore per shopper session.

    A store is created the first time a session asks for it and discarded
    when the session ends.
    """

    def __init__(self):
        self._carts: Dict[str, CartStore] = {}

    def get(self, session_key: str) -> CartStore:
        cart = self._carts.get(session_key)
        if cart is None:
            cart = CartStore()
            self._carts[session_key] = cart
        return cart

    def discard(self, session_key: str) -> None:
        self._carts.pop(session_key, None)

    def __contains__(self, session_key):
        return session_key in self._carts
