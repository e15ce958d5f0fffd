"""Resource server payloads: products, categories, orders."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

__all__ = [
    "Product",
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
    "unwrap_page",
    "to_decimal",
]


def unwrap_page(data: Any) -> list:
    """Return the items of a bare array or a ``{"content": [...]}`` page."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("content"), list):
        return data["content"]
    return []


def to_decimal(value: Any) -> Decimal:
    """Parse a JSON number/string into a Decimal (money never goes through float)."""
    if value is None:
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return amount


def require_str(data: dict, key: str) -> str:
    """Return ``data[key]``, which must be a string."""
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"Expected a string for {key!r}, got {value!r}")
    return value


def optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class Product:
    """A catalog product."""

    id: str
    name: str
    price: Decimal
    stock: int = 0
    brand: Optional[str] = None
    category_name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None

    @property
    def sold_out(self) -> bool:
        return self.stock == 0

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=str(data["id"]),
            name=require_str(data, "name"),
            price=to_decimal(data.get("price")),
            stock=int(data.get("stock") or 0),
            brand=optional_str(data.get("brand")),
            category_name=optional_str(data.get("categoryName")),
            description=optional_str(data.get("description")),
            image_url=optional_str(data.get("imageUrl")),
            size=optional_str(data.get("size")),
            color=optional_str(data.get("color")),
        )


@dataclass
class Category:
    """A product category."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(id=str(data["id"]), name=require_str(data, "name"))


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


@dataclass
class OrderItem:
    """A line of a placed order."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: dict) -> "OrderItem":
        return cls(
            product_id=str(data.get("productId", "")),
            product_name=optional_str(data.get("productName")) or "",
            quantity=int(data["quantity"]),
            unit_price=to_decimal(data.get("unitPrice")),
        )


@dataclass
class Order:
    """A server-owned order. Never mutated client-side."""

    id: str
    status: OrderStatus
    total_amount: Decimal
    items: list[OrderItem] = field(default_factory=list)
    created_at: Optional[str] = None

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        return cls(
            id=str(data["id"]),
            status=OrderStatus(str(data["status"]).upper()),
            total_amount=to_decimal(data.get("totalAmount")),
            items=[OrderItem.from_dict(i) for i in data.get("items") or []],
            created_at=data.get("createdAt"),
        )
