"""Local HTTP server that serves the storefront to the user's browser.

Browser requests are mapped onto controller actions. Login and logout are
real full-document navigations: the flow's navigator records the target
and the handler answers with a 303 redirect to it.
"""

import logging
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Optional
from urllib.parse import parse_qs, urlparse

from .controller import Page, ShopController

__all__ = ["StorefrontServer", "RedirectNavigator"]

logger = logging.getLogger(__name__)

_NOT_FOUND_HTML = """\
<!DOCTYPE html>
<html>
<head><title>VOID MARKET - Not Found</title></head>
<body><h1>Not Found</h1><p><a href="/">Back to the shop</a></p></body>
</html>
"""

_PAGES = {"/home": Page.HOME, "/cart": Page.CART, "/orders": Page.ORDERS}


class RedirectNavigator:
    """Collects the URL the flow wants the browser to navigate to."""

    def __init__(self) -> None:
        self.location: Optional[str] = None

    def __call__(self, url: str) -> None:
        self.location = url

    def take(self) -> Optional[str]:
        location, self.location = self.location, None
        return location


class _StorefrontHandler(BaseHTTPRequestHandler):
    """HTTP handler that renders the storefront pages."""

    def do_GET(self):  # noqa: N802 - required by BaseHTTPRequestHandler
        controller: ShopController = self.server.controller
        parsed = urlparse(self.path)

        if parsed.path == controller.callback_path:
            location = controller.handle_callback(self.path)
            self._redirect(location)
            return

        if parsed.path == "/":
            controller.bootstrap(self.path)
            self._send_page()
            return

        if parsed.path in _PAGES:
            self._ensure_catalog()
            controller.navigate(_PAGES[parsed.path])
            self._send_page()
            return

        if parsed.path == "/search":
            self._ensure_catalog()
            params = parse_qs(parsed.query)
            controller.apply_filters(
                search=params.get("q", [""])[0],
                category_id=params.get("category", [""])[0],
            )
            self._send_page()
            return

        self._send_html(404, _NOT_FOUND_HTML)

    def do_POST(self):  # noqa: N802 - required by BaseHTTPRequestHandler
        controller: ShopController = self.server.controller
        path = urlparse(self.path).path

        if path == "/login":
            controller.login()
            self._redirect(self.server.navigator.take() or "/")
            return

        if path == "/logout":
            controller.logout()
            self._redirect(self.server.navigator.take() or "/")
            return

        if path == "/cart/add":
            product_id = self._read_form().get("product_id", [""])[0]
            if product_id:
                controller.add_to_cart(product_id)
            self._redirect(self._back_location())
            return

        if path == "/checkout":
            self._ensure_catalog()
            controller.checkout()
            self._send_page()
            return

        self._send_html(404, _NOT_FOUND_HTML)

    def _ensure_catalog(self) -> None:
        controller: ShopController = self.server.controller
        if not controller.catalog.loaded:
            controller.load_catalog()

    def _read_form(self) -> dict[str, list[str]]:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length).decode("utf-8") if length else ""
        return parse_qs(body)

    def _back_location(self) -> str:
        """Same-origin referring path, or the shop page.

        The landing page maps to /home: going back to / would bootstrap
        and refetch the catalog.
        """
        referer = self.headers.get("Referer")
        if referer:
            parsed = urlparse(referer)
            if parsed.netloc == self.headers.get("Host") and parsed.path not in ("", "/"):
                return parsed.path + (f"?{parsed.query}" if parsed.query else "")
        return "/home"

    def _send_page(self) -> None:
        self._send_html(200, self.server.controller.render())

    def _send_html(self, status: int, body: str) -> None:
        encoded = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(encoded)

    def _redirect(self, location: str) -> None:
        self.send_response(303)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        """Route request logs through logging (never the query string)."""
        logger.debug(f"Storefront: {self.command} {urlparse(self.path).path}")


class StorefrontServer:
    """Single-threaded storefront server on the loopback interface."""

    def __init__(
        self,
        controller: ShopController,
        navigator: RedirectNavigator,
        host: str = "127.0.0.1",
        port: int = 5173,
    ):
        """Initialize the storefront server.

        Args:
            controller: Controller that renders pages and runs actions
            navigator: Navigator shared with the login flow
            host: Interface to bind
            port: Port to bind (0 picks a free port)
        """
        self._server = HTTPServer((host, port), _StorefrontHandler)
        self._server.controller = controller
        self._server.navigator = navigator

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    @property
    def url(self) -> str:
        return f"http://{self._server.server_address[0]}:{self.port}/"

    def serve_forever(self) -> None:
        logger.info(f"Storefront listening on {self.url}")
        self._server.serve_forever()

    def shutdown(self) -> None:
        """Stop serve_forever() (call from another thread)."""
        self._server.shutdown()

    def close(self) -> None:
        self._server.server_close()
