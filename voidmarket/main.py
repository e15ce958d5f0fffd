"""VOID MARKET - Main entry point."""

import json
import logging
import signal
import threading
import webbrowser
from dataclasses import asdict
from typing import Optional

import typer

from . import __version__
from .auth import PKCEFlow
from .config import Config, setup_logging
from .shop import Cart, ShopClient
from .storage import JsonFileStore, KeyringStore, MemoryStore
from .ui import RedirectNavigator, ShopController, StorefrontServer

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, help="VOID MARKET storefront client.")


def _cart_store(config: Config) -> JsonFileStore:
    return JsonFileStore(config.get_data_dir() / "storage.json")


class VoidMarketApp:
    """Main application class."""

    def __init__(self, config: Config):
        """Wire stores, login flow, API client, controller and server."""
        self.config = config

        # Session-scoped: lives as long as this process
        self.session_store = MemoryStore()
        self.token_store = KeyringStore() if config.remember_login else self.session_store
        self.cart_store = _cart_store(config)

        self.navigator = RedirectNavigator()
        self.flow = PKCEFlow(
            settings=config.auth,
            redirect_uri=config.redirect_uri,
            session_store=self.session_store,
            token_store=self.token_store,
            navigate=self.navigator,
            timeout=config.request_timeout,
        )
        self.client = ShopClient(
            api_url=config.api_url,
            auth_header=self.flow.auth_header,
            timeout=config.request_timeout,
        )
        self.controller = ShopController(
            flow=self.flow,
            client=self.client,
            cart=Cart(self.cart_store),
            product_page_size=config.product_page_size,
            callback_path=config.auth.callback_path,
        )
        self.server = StorefrontServer(
            self.controller,
            self.navigator,
            host=config.server.host,
            port=config.server.port,
        )
        self._shutdown_event = threading.Event()

    def run(self) -> None:
        """Serve the storefront until interrupted."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        logger.info(f"VOID MARKET {__version__} starting...")
        if self.config.open_browser:
            threading.Thread(
                target=webbrowser.open, args=(self.server.url,), daemon=True
            ).start()

        try:
            self.server.serve_forever()
        finally:
            self._shutdown()

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down")
        # shutdown() blocks until serve_forever() returns; never call it on
        # the serving thread
        threading.Thread(target=self.server.shutdown, daemon=True).start()

    def _shutdown(self) -> None:
        if self._shutdown_event.is_set():
            return
        self._shutdown_event.set()
        self.server.close()
        self.client.close()
        self.flow.close()
        logger.info("VOID MARKET stopped")


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Local port to serve on."),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    no_browser: bool = typer.Option(False, "--no-browser", help="Do not open the browser."),
) -> None:
    """Serve the storefront locally and open it in the browser."""
    config = Config.load()
    if port is not None:
        config.server.port = port
    if no_browser:
        config.open_browser = False
    setup_logging(debug or config.debug_mode)

    VoidMarketApp(config).run()


@app.command("config")
def show_config() -> None:
    """Show the config file path and effective settings."""
    config = Config.load()
    typer.echo(f"Config file: {Config.get_config_file()}")
    typer.echo(json.dumps(asdict(config), indent=2))


@app.command("clear-cart")
def clear_cart() -> None:
    """Empty the saved cart."""
    Cart(_cart_store(Config.load())).clear()
    typer.echo("Cart cleared.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
