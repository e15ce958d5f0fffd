"""Tests for storefront HTML rendering."""

from decimal import Decimal

from voidmarket.shop.cart import CartItem
from voidmarket.shop.catalog import CatalogSnapshot
from voidmarket.shop.models import Category, Order, OrderItem, OrderStatus, Product
from voidmarket.ui import views


def make_product(**overrides) -> Product:
    fields = dict(id="p1", name="Void Tee", brand="Nyx", price=Decimal("19.99"), stock=3)
    fields.update(overrides)
    return Product(**fields)


class TestProductCard:
    """Tests for product cards."""

    def test_sold_out_has_disabled_button_and_no_form(self):
        """Test stock 0 renders a disabled Sold Out control."""
        html = views.product_card(make_product(stock=0))

        assert "Sold Out" in html
        assert "disabled" in html
        assert "/cart/add" not in html

    def test_in_stock_has_add_form(self):
        """Test in-stock products can be added to the cart."""
        html = views.product_card(make_product())

        assert 'action="/cart/add"' in html
        assert 'value="p1"' in html
        assert "disabled" not in html

    def test_escapes_server_values(self):
        """Test product fields are HTML-escaped."""
        html = views.product_card(make_product(name="<script>x</script>", brand="A&B"))

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "A&amp;B" in html

    def test_price_format(self):
        assert views.format_price(Decimal("5")) == "&euro;5.00"
        assert views.format_price(Decimal("19.99")) == "&euro;19.99"

    def test_price_too_large_for_cents(self):
        """Test a huge amount still renders instead of raising."""
        assert views.format_price(Decimal("1e30")) == "&euro;1E+30"

    def test_placeholder_without_image(self):
        html = views.product_card(make_product(image_url=None))

        assert "product-placeholder" in html
        assert "<img" not in html


class TestHomePage:
    """Tests for the catalog page."""

    def test_category_options_and_selection(self):
        """Test categories become options and the active one is selected."""
        catalog = CatalogSnapshot.capture([], [Category("c1", "Tops"), Category("c2", "Shoes")])

        html = views.home_page(catalog, [], search="void", category_id="c2")

        assert '<option value="c1">Tops</option>' in html
        assert '<option value="c2" selected>Shoes</option>' in html
        assert 'value="void"' in html

    def test_notice(self):
        html = views.home_page(CatalogSnapshot(), [], notice="Sign-in did not complete.")

        assert 'class="notice"' in html


class TestCartPage:
    """Tests for the cart page."""

    def test_empty_cart(self):
        html = views.cart_page([], Decimal("0"), logged_in=True)

        assert "Your cart is empty." in html
        assert "checkoutBtn" not in html

    def test_lines_and_total(self):
        """Test each line shows name, brand and unit price x quantity."""
        lines = [(make_product(), CartItem("p1", 2))]

        html = views.cart_page(lines, Decimal("39.98"), logged_in=True)

        assert "Void Tee" in html
        assert "&euro;19.99 &times; 2" in html
        assert "Total: <strong>&euro;39.98</strong>" in html
        assert 'id="checkoutBtn"' in html

    def test_logged_out_shows_login_hint(self):
        html = views.cart_page([(make_product(), CartItem("p1", 1))], Decimal("19.99"), logged_in=False)

        assert "Please log in to checkout." in html
        assert "checkoutBtn" not in html

    def test_checkout_disabled_while_in_flight(self):
        html = views.cart_page(
            [(make_product(), CartItem("p1", 1))], Decimal("19.99"), logged_in=True, checkout_enabled=False
        )

        assert 'id="checkoutBtn" disabled' in html


class TestOrdersPage:
    """Tests for the orders page."""

    def test_order_card(self):
        """Test the card carries short id, status class, total and items."""
        order = Order(
            id="abcdef1234567890",
            status=OrderStatus.SHIPPED,
            total_amount=Decimal("10"),
            items=[
                OrderItem("p1", "Void Tee", 1),
                OrderItem("p2", "Grave Boots", 2),
            ],
        )

        html = views.orders_page([order])

        assert "#abcdef12" in html
        assert "status-shipped" in html
        assert "&euro;10.00" in html
        assert "Void Tee &times;1" in html
        assert "Grave Boots &times;2" in html


class TestDocument:
    """Tests for the document shell."""

    def test_cart_count_in_nav(self):
        html = views.render_document("<p>hi</p>", "3", logged_in=False)

        assert '<span class="cart-count">3</span>' in html
        assert 'id="pageContent"><p>hi</p>' in html
        assert 'id="loginBtn"' in html

    def test_logged_in_nav(self):
        html = views.render_document("", "0", logged_in=True)

        assert 'href="/orders"' in html
        assert 'id="logoutBtn"' in html
        assert 'id="loginBtn"' not in html
