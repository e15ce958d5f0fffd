"""HTML rendering for the storefront pages.

Every value that comes from the resource server or the user is escaped.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from html import escape
from typing import Optional

from ..shop.cart import CartItem
from ..shop.catalog import CatalogSnapshot
from ..shop.models import Order, Product

__all__ = [
    "render_document",
    "home_page",
    "product_grid",
    "product_card",
    "cart_page",
    "orders_page",
    "login_prompt",
    "loading",
    "empty_state",
    "success_message",
    "error_message",
    "format_price",
]

_DOCUMENT_HTML = """\
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>VOID MARKET</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, sans-serif; margin: 0; background: #0d0d12; color: #e5e5e5; }}
        .nav {{ display: flex; justify-content: space-between; align-items: center; padding: 16px 32px; background: #111; }}
        .nav a, .link-btn {{ color: #e5e5e5; margin-left: 16px; text-decoration: none; }}
        .nav form {{ display: inline; }}
        .main {{ max-width: 1100px; margin: 0 auto; padding: 24px; }}
        .product-grid {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(220px, 1fr)); gap: 16px; }}
        .product-card, .order-card, .cart-item {{ background: #1a1a2e; border-radius: 8px; padding: 16px; }}
        .out-of-stock {{ color: #ef4444; font-weight: bold; }}
        .error-msg {{ color: #ef4444; }}
        .success-msg {{ color: #22c55e; }}
        .notice {{ background: #3b2f0b; padding: 8px 16px; border-radius: 6px; }}
    </style>
</head>
<body>
<div class="app">
    <nav class="nav">
        <a class="nav-brand" href="/home">VOID MARKET</a>
        <div class="nav-links">
            <a href="/home">Shop</a>
            <a href="/cart">Cart <span class="cart-count">{cart_count}</span></a>
            {auth_links}
        </div>
    </nav>
    {message}
    <main class="main" id="pageContent">{content}</main>
    <footer class="footer"><p>VOID MARKET &copy; {year}</p></footer>
</div>
</body>
</html>
"""

_LOGGED_IN_LINKS = (
    '<a href="/orders">Orders</a>'
    '<form method="post" action="/logout"><button class="nav-btn" id="logoutBtn">Logout</button></form>'
)
_LOGGED_OUT_LINKS = (
    '<form method="post" action="/login"><button class="nav-btn" id="loginBtn">Login</button></form>'
)


def format_price(amount: Decimal) -> str:
    try:
        amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        # Too many digits to show cents
        pass
    return f"&euro;{escape(str(amount))}"


def render_document(content: str, cart_count: str, logged_in: bool, message: str = "") -> str:
    """Wrap page content in the full document with navigation."""
    return _DOCUMENT_HTML.format(
        cart_count=escape(cart_count),
        auth_links=_LOGGED_IN_LINKS if logged_in else _LOGGED_OUT_LINKS,
        message=message,
        content=content,
        year=date.today().year,
    )


def product_card(product: Product) -> str:
    """Render one product. Sold-out products get no add-to-cart form."""
    if product.image_url:
        image = f'<img src="{escape(product.image_url)}" alt="{escape(product.name)}"/>'
    else:
        image = '<div class="product-placeholder">&#128084;</div>'

    tags = "".join(
        f'<span class="tag">{escape(value)}</span>'
        for value in (product.size, product.color)
        if value
    )

    if product.sold_out:
        badge = '<div class="out-of-stock">SOLD OUT</div>'
        action = '<button class="add-to-cart" type="button" disabled>Sold Out</button>'
    else:
        badge = ""
        action = (
            '<form method="post" action="/cart/add">'
            f'<input type="hidden" name="product_id" value="{escape(product.id)}"/>'
            f'<button class="add-to-cart" data-id="{escape(product.id)}">+ Cart</button>'
            "</form>"
        )

    return f"""
      <div class="product-card">
        <div class="product-img">{image}{badge}</div>
        <div class="product-info">
          <div class="product-brand">{escape(product.brand or '')}</div>
          <div class="product-name">{escape(product.name)}</div>
          <div class="product-meta">{tags}</div>
          <div class="product-footer">
            <span class="product-price">{format_price(product.price)}</span>
            {action}
          </div>
        </div>
      </div>"""


def product_grid(products: list[Product]) -> str:
    cards = "".join(product_card(p) for p in products)
    return f'<div class="product-grid" id="productGrid">{cards}</div>'


def home_page(
    catalog: CatalogSnapshot,
    products: list[Product],
    search: str = "",
    category_id: str = "",
    notice: Optional[str] = None,
) -> str:
    """Hero, filter form and product grid."""
    options = "".join(
        f'<option value="{escape(c.id)}"{" selected" if c.id == category_id else ""}>'
        f"{escape(c.name)}</option>"
        for c in catalog.categories
    )
    notice_html = f'<div class="notice">{escape(notice)}</div>' if notice else ""
    return f"""
      {notice_html}
      <section class="hero">
        <h1 class="hero-title">WEAR THE <span class="accent">VOID</span></h1>
        <p class="hero-sub">Alt fashion for those who refuse to conform.</p>
      </section>
      <section class="catalog">
        <form class="filters" method="get" action="/search">
          <input type="text" id="searchInput" name="q" value="{escape(search)}" placeholder="Search brands, styles..."/>
          <select id="categoryFilter" name="category">
            <option value="">All Categories</option>
            {options}
          </select>
          <button type="submit">Filter</button>
        </form>
        {product_grid(products)}
      </section>"""


def empty_state(text: str, link: Optional[tuple[str, str]] = None) -> str:
    link_html = ""
    if link:
        href, label = link
        link_html = f'<a href="{escape(href)}" class="btn-primary">{escape(label)}</a>'
    return f'<div class="empty-state"><p>{escape(text)}</p>{link_html}</div>'


def login_prompt(text: str) -> str:
    return (
        f'<div class="empty-state"><p>{escape(text)}</p>'
        '<form method="post" action="/login"><button class="link-btn" id="loginBtn">Login</button></form>'
        "</div>"
    )


def loading(text: str) -> str:
    return f'<div class="loading">{escape(text)}</div>'


def success_message(text: str, link: Optional[tuple[str, str]] = None) -> str:
    link_html = ""
    if link:
        href, label = link
        link_html = f' <a href="{escape(href)}">{escape(label)}</a>'
    return f'<div class="success-msg">&#10003; {escape(text)}{link_html}</div>'


def error_message(text: str) -> str:
    return f'<div class="error-msg">{escape(text)}</div>'


def cart_page(
    lines: list[tuple[Product, CartItem]],
    total: Decimal,
    logged_in: bool,
    checkout_enabled: bool = True,
    checkout_message: str = "",
) -> str:
    """Cart lines, total and the checkout control (or a login hint)."""
    if not lines:
        body = empty_state("Your cart is empty.", ("/home", "Browse Shop"))
        return f'{body}<div id="checkoutMsg">{checkout_message}</div>'

    items = "".join(
        f"""
        <div class="cart-item">
          <div class="cart-item-name">{escape(product.name)}</div>
          <div class="cart-item-brand">{escape(product.brand or '')}</div>
          <div class="cart-item-price">{format_price(product.price)} &times; {item.quantity}</div>
        </div>"""
        for product, item in lines
    )

    if logged_in:
        disabled = "" if checkout_enabled else " disabled"
        label = "Place Order" if checkout_enabled else "Placing order..."
        control = (
            '<form method="post" action="/checkout">'
            f'<button class="btn-primary" id="checkoutBtn"{disabled}>{label}</button>'
            "</form>"
        )
    else:
        control = (
            '<p class="cart-login-hint">Please log in to checkout.</p>'
            '<form method="post" action="/login"><button class="link-btn" id="loginBtn">Login</button></form>'
        )

    return f"""
      <section class="cart-section">
        <h2 class="section-title">Your Cart</h2>
        <div class="cart-items">{items}</div>
        <div class="cart-total">Total: <strong>{format_price(total)}</strong></div>
        {control}
        <div id="checkoutMsg">{checkout_message}</div>
      </section>"""


def _order_card(order: Order) -> str:
    summary = ", ".join(
        f'<span class="order-item-name">{escape(i.product_name)} &times;{i.quantity}</span>'
        for i in order.items
    )
    status = order.status.value
    return f"""
        <div class="order-card">
          <div class="order-header">
            <span class="order-id">#{escape(order.short_id)}</span>
            <span class="order-status status-{status.lower()}">{status}</span>
            <span class="order-total">{format_price(order.total_amount)}</span>
          </div>
          <div class="order-items">{summary}</div>
        </div>"""


def orders_page(orders: list[Order]) -> str:
    """Order cards: short id, status, total and an item summary."""
    cards = "".join(_order_card(o) for o in orders)
    return f"""
      <section class="orders-section">
        <h2 class="section-title">Your Orders</h2>
        {cards}
      </section>"""
