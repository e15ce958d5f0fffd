"""Locally-owned shopping cart, persisted to durable storage."""

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..storage import SessionStore
from .catalog import CatalogSnapshot
from .models import Product

__all__ = ["Cart", "CartItem", "CART_KEY"]

logger = logging.getLogger(__name__)

CART_KEY = "shop_cart"


@dataclass
class CartItem:
    """A cart line item. Quantity is always >= 1."""

    product_id: str
    quantity: int = 1

    def to_dict(self) -> dict:
        return {"id": self.product_id, "qty": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(product_id=str(data["id"]), quantity=int(data["qty"]))


class Cart:
    """Ordered cart line items.

    Loaded once on construction and written back on every mutation.
    Products are not checked on add; they are resolved against the
    catalog snapshot when the cart is rendered or checked out.
    """

    def __init__(self, store: SessionStore):
        self._store = store
        self._items: list[CartItem] = self._load()

    def _load(self) -> list[CartItem]:
        raw = self._store.get(CART_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable cart: {e}")
            return []
        if not isinstance(data, list):
            logger.warning("Discarding malformed cart")
            return []

        items = []
        for entry in data:
            try:
                item = CartItem.from_dict(entry)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Dropping malformed cart entry: {entry!r}")
                continue
            if item.quantity <= 0:
                logger.warning(f"Dropping cart entry with quantity {item.quantity}")
                continue
            items.append(item)
        return items

    def _save(self) -> None:
        self._store.set(CART_KEY, json.dumps([i.to_dict() for i in self._items]))

    @property
    def items(self) -> list[CartItem]:
        return [CartItem(i.product_id, i.quantity) for i in self._items]

    @property
    def count(self) -> int:
        """Number of line items (what the cart badge shows)."""
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def find(self, product_id: str) -> Optional[CartItem]:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def add(self, product_id: str) -> CartItem:
        """Add one unit of a product, merging with an existing line item."""
        item = self.find(product_id)
        if item:
            item.quantity += 1
        else:
            item = CartItem(product_id=product_id, quantity=1)
            self._items.append(item)
        self._save()
        logger.debug(f"Cart: {product_id} x{item.quantity}")
        return item

    def clear(self) -> None:
        """Empty the cart in memory and in storage."""
        self._items = []
        self._store.clear(CART_KEY)

    def order_items(self) -> list[dict]:
        """Line items in the create-order request shape."""
        return [{"productId": i.product_id, "quantity": i.quantity} for i in self._items]

    def lines(self, catalog: CatalogSnapshot) -> list[tuple[Product, CartItem]]:
        """Resolve line items against the catalog, skipping unknown products."""
        resolved = []
        for item in self._items:
            product = catalog.find_product(item.product_id)
            if product is not None:
                resolved.append((product, item))
        return resolved

    def total(self, catalog: CatalogSnapshot) -> Decimal:
        return sum(
            (product.price * item.quantity for product, item in self.lines(catalog)),
            Decimal("0"),
        )
