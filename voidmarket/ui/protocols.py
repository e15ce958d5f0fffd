"""Protocol types for ShopController dependencies.

Defines the interfaces that ShopController requires from its collaborators,
enabling easier testing and looser coupling.
"""

from typing import Optional, Protocol, runtime_checkable

from ..shop.models import Category, Order, Product


@runtime_checkable
class AuthFlowProtocol(Protocol):
    """Interface for the login flow."""

    def start_login(self) -> None: ...

    def handle_return(self, url: str) -> None: ...

    def logout(self) -> None: ...

    def is_authenticated(self) -> bool: ...

    def auth_header(self) -> Optional[str]: ...

    def last_login_failed(self) -> bool: ...


@runtime_checkable
class ShopClientProtocol(Protocol):
    """Interface for the shop resource server."""

    def get_products(self, size: int = 50) -> list[Product]: ...

    def get_categories(self) -> list[Category]: ...

    def get_orders(self) -> list[Order]: ...

    def create_order(self, items: list[dict]) -> Optional[Order]: ...
