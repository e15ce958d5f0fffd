"""Point-in-time catalog snapshot and client-side product filtering."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .models import Category, Product

__all__ = ["CatalogSnapshot", "filter_products"]


@dataclass
class CatalogSnapshot:
    """Products and categories as fetched on the last page load."""

    products: list[Product] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    fetched_at: Optional[datetime] = None

    @classmethod
    def capture(cls, products: list[Product], categories: list[Category]) -> "CatalogSnapshot":
        return cls(products, categories, datetime.now(timezone.utc))

    @property
    def loaded(self) -> bool:
        return self.fetched_at is not None

    def find_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def find_category(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def filter(self, search: str = "", category_id: str = "") -> list[Product]:
        return filter_products(self, search, category_id)


def filter_products(
    catalog: CatalogSnapshot, search: str = "", category_id: str = ""
) -> list[Product]:
    """Filter products by search text and category.

    Search is a case-insensitive substring match on name or brand.
    Products carry only their category name, so the selected category id
    is resolved through the snapshot; an unknown id matches nothing.
    """
    needle = search.strip().lower()
    category_name: Optional[str] = None
    if category_id:
        category = catalog.find_category(category_id)
        if category is None:
            return []
        category_name = category.name

    def matches(product: Product) -> bool:
        if needle and needle not in product.name.lower() and needle not in (product.brand or "").lower():
            return False
        if category_name is not None and product.category_name != category_name:
            return False
        return True

    return [p for p in catalog.products if matches(p)]
