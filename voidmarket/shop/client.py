"""Shop API client - catalog reads and order placement."""

import logging
from typing import Optional

from .http_client import (
    BaseApiClient,
    ShopAuthError,
    ShopClientError,
    ShopConnectionError,
)
from .models import Category, Order, Product, unwrap_page

__all__ = [
    "ShopClient",
    "ShopClientError",
    "ShopAuthError",
    "ShopConnectionError",
]

logger = logging.getLogger(__name__)


class ShopClient(BaseApiClient):
    """Client for the shop resource server."""

    def get_products(self, size: int = 50) -> list[Product]:
        """Fetch the first page of products."""
        data = self._request("GET", "products", params={"size": size})
        return self._parse(data, Product.from_dict, "product")

    def get_categories(self) -> list[Category]:
        """Fetch all categories."""
        data = self._request("GET", "categories")
        return self._parse(data, Category.from_dict, "category")

    def get_orders(self) -> list[Order]:
        """Fetch the current user's orders (server default page)."""
        data = self._request("GET", "orders", authenticated=True)
        return self._parse(data, Order.from_dict, "order")

    def create_order(self, items: list[dict]) -> Optional[Order]:
        """Place an order.

        Args:
            items: Line items as {"productId": ..., "quantity": ...}

        Returns:
            The created order when the server echoes it back
        """
        data = self._request(
            "POST", "orders", data={"items": items}, authenticated=True
        )
        if not isinstance(data, dict) or "id" not in data:
            return None
        try:
            return Order.from_dict(data)
        except (KeyError, TypeError, ValueError):
            logger.warning("Order created but response could not be parsed")
            return None

    @staticmethod
    def _parse(data, factory, kind: str) -> list:
        try:
            return [factory(item) for item in unwrap_page(data)]
        except (KeyError, TypeError, ValueError) as e:
            raise ShopClientError(f"Malformed {kind} payload: {e}") from e
