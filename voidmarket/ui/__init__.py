"""UI module - storefront controller, views and local server."""

from .controller import ShopController, Page, Screen
from .server import StorefrontServer, RedirectNavigator

__all__ = ["ShopController", "Page", "Screen", "StorefrontServer", "RedirectNavigator"]
