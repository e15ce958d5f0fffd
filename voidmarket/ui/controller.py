"""Session-gated storefront controller.

Owns what the user sees (the Screen), the cart and the catalog snapshot,
and decides per action whether the resource server may be called based on
the presence of an access token.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from urllib.parse import urlparse

from ..shop.cart import Cart
from ..shop.catalog import CatalogSnapshot
from ..shop.client import ShopAuthError, ShopClientError, ShopConnectionError
from . import views
from .protocols import AuthFlowProtocol, ShopClientProtocol

__all__ = ["ShopController", "Page", "Screen"]

logger = logging.getLogger(__name__)


class Page(Enum):
    """In-app pages."""

    HOME = "home"
    CART = "cart"
    ORDERS = "orders"


@dataclass
class Screen:
    """What the user currently sees."""

    location: str = "/"
    page: Page = Page.HOME
    content: str = ""
    cart_count: str = "0"
    message: str = ""
    checkout_enabled: bool = True


class ShopController:
    """Drives page state, cart and checkout for one browsing session."""

    def __init__(
        self,
        flow: AuthFlowProtocol,
        client: ShopClientProtocol,
        cart: Cart,
        product_page_size: int = 50,
        callback_path: str = "/callback",
    ):
        """Initialize the controller.

        Args:
            flow: Login flow (token presence gates protected actions)
            client: Shop resource server client
            cart: Durable cart, already loaded from storage
            product_page_size: Products requested per catalog load
            callback_path: Path the authorization server redirects back to
        """
        self.flow = flow
        self.client = client
        self.cart = cart
        self.product_page_size = product_page_size
        self.callback_path = callback_path

        self.catalog = CatalogSnapshot()
        self.search = ""
        self.category_id = ""
        self.screen = Screen(cart_count=str(cart.count))
        self._checkout_in_flight = False

    # -- bootstrap -----------------------------------------------------

    def handle_callback(self, url: str) -> str:
        """Finish a login if ``url`` is the OAuth callback.

        Returns:
            The location the user should see (the callback URL is never kept)
        """
        parsed = urlparse(url)
        if parsed.path == self.callback_path:
            self.flow.handle_return(url)
            self.screen.location = "/"
        else:
            self.screen.location = parsed.path or "/"
        return self.screen.location

    def bootstrap(self, url: str) -> Screen:
        """Full page load: callback handling, catalog fetch, home render."""
        self.handle_callback(url)
        self.load_catalog()
        self.screen.cart_count = str(self.cart.count)
        return self.navigate(Page.HOME)

    def load_catalog(self) -> CatalogSnapshot:
        """Fetch products and categories concurrently.

        A failed fetch leaves its list empty; the page still renders.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="catalog") as pool:
            products_future = pool.submit(self.client.get_products, self.product_page_size)
            categories_future = pool.submit(self.client.get_categories)

        failed = False
        try:
            products = products_future.result()
        except ShopClientError as e:
            logger.warning(f"Failed to load products: {e}")
            products, failed = [], True
        try:
            categories = categories_future.result()
        except ShopClientError as e:
            logger.warning(f"Failed to load categories: {e}")
            categories, failed = [], True

        self.catalog = CatalogSnapshot.capture(products, categories)
        self.screen.message = (
            views.error_message("The catalog is unavailable right now. Please reload later.")
            if failed
            else ""
        )
        logger.info(f"Catalog loaded: {len(products)} products, {len(categories)} categories")
        return self.catalog

    # -- navigation ----------------------------------------------------

    def navigate(self, page: Union[Page, str]) -> Screen:
        """Switch in-app page. Never reloads the catalog."""
        page = Page(page)
        self.screen.page = page
        self.screen.location = f"/{page.value}"
        if page is Page.HOME:
            self._render_home()
        elif page is Page.CART:
            self._render_cart()
        else:
            self._render_orders()
        return self.screen

    def apply_filters(self, search: str = "", category_id: str = "") -> Screen:
        """Re-render the product grid for the given filters."""
        self.search = search
        self.category_id = category_id
        self.screen.page = Page.HOME
        self._render_home()
        return self.screen

    def _render_home(self) -> None:
        notice = None
        if self.flow.last_login_failed():
            notice = "Sign-in did not complete. Please try logging in again."
        self.screen.content = views.home_page(
            self.catalog,
            self.catalog.filter(self.search, self.category_id),
            search=self.search,
            category_id=self.category_id,
            notice=notice,
        )

    def _render_cart(self, checkout_message: str = "") -> None:
        self.screen.content = views.cart_page(
            self.cart.lines(self.catalog),
            self.cart.total(self.catalog),
            logged_in=self.flow.is_authenticated(),
            checkout_enabled=self.screen.checkout_enabled,
            checkout_message=checkout_message,
        )

    def _render_orders(self) -> None:
        if not self.flow.is_authenticated():
            self.screen.content = views.login_prompt("Please login to view orders.")
            return

        self.screen.content = views.loading("Loading orders...")
        try:
            orders = self.client.get_orders()
        except ShopAuthError as e:
            logger.warning(f"Orders request rejected: {e}")
            self.screen.content = views.login_prompt(
                "Your session has expired. Please login to view orders."
            )
            return
        except ShopClientError as e:
            logger.warning(f"Failed to load orders: {e}")
            self.screen.content = views.empty_state("Failed to load orders.")
            return

        if not orders:
            self.screen.content = views.empty_state("No orders yet.")
        else:
            self.screen.content = views.orders_page(orders)

    # -- cart ----------------------------------------------------------

    def add_to_cart(self, product_id: str) -> str:
        """Add one unit and update the cart badge (no page re-render).

        Returns:
            The new cart count label
        """
        self.cart.add(product_id)
        self.screen.cart_count = str(self.cart.count)
        return self.screen.cart_count

    def checkout(self) -> Screen:
        """Place an order for the whole cart.

        Only one submission may be in flight; the cart is cleared only after
        the server confirms the order and is left untouched otherwise.
        """
        if self._checkout_in_flight:
            logger.warning("Checkout already in progress; ignoring resubmission")
            return self.screen

        self.screen.page = Page.CART
        self.screen.location = "/cart"

        if not self.flow.is_authenticated():
            self.screen.content = views.login_prompt("Please login to checkout.")
            return self.screen
        if self.cart.is_empty():
            self._render_cart()
            return self.screen

        self._checkout_in_flight = True
        self.screen.checkout_enabled = False
        try:
            order = self.client.create_order(self.cart.order_items())
        except ShopAuthError as e:
            logger.warning(f"Checkout rejected: {e}")
            message = views.error_message("Your session has expired. Please login again.")
        except ShopConnectionError as e:
            logger.warning(f"Checkout failed: {e}")
            message = views.error_message("Network error. Please try again.")
        except ShopClientError as e:
            logger.warning(f"Checkout failed: {e}")
            message = views.error_message("Order failed. Please try again.")
        else:
            self.cart.clear()
            self.screen.cart_count = "0"
            logger.info(f"Order placed: {order.id if order else 'no body'}")
            message = views.success_message("Order placed!", ("/orders", "View orders"))
        finally:
            self._checkout_in_flight = False
            self.screen.checkout_enabled = True

        self._render_cart(checkout_message=message)
        return self.screen

    # -- auth ----------------------------------------------------------

    def login(self) -> None:
        self.flow.start_login()

    def logout(self) -> None:
        self.flow.logout()

    def render(self) -> str:
        """Full HTML document for the current screen."""
        return views.render_document(
            self.screen.content,
            self.screen.cart_count,
            self.flow.is_authenticated(),
            self.screen.message,
        )
