"""Shop module - resource server client, catalog and cart."""

from .cart import Cart, CartItem
from .catalog import CatalogSnapshot, filter_products
from .client import ShopClient, ShopClientError, ShopAuthError, ShopConnectionError
from .models import Product, Category, Order, OrderItem, OrderStatus

__all__ = [
    "Cart",
    "CartItem",
    "CatalogSnapshot",
    "filter_products",
    "ShopClient",
    "ShopClientError",
    "ShopAuthError",
    "ShopConnectionError",
    "Product",
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
]
