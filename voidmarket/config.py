"""Configuration management for VOID MARKET."""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir, user_data_dir, user_log_dir

__all__ = [
    "Config",
    "AuthSettings",
    "ServerSettings",
    "setup_logging",
    "DEFAULT_API_URL",
    "DEFAULT_AUTH_SERVER_URL",
]

logger = logging.getLogger(__name__)

APP_NAME = "VOID MARKET"
APP_AUTHOR = "Acheron"

# Remote endpoints
DEFAULT_API_URL = "http://localhost:8080/api"
DEFAULT_AUTH_SERVER_URL = "http://localhost:9000"

# OAuth client registration
DEFAULT_CLIENT_ID = "alt-shop_mobile"
DEFAULT_SCOPES = "openid profile email message.read"
DEFAULT_CALLBACK_PATH = "/callback"

# Local storefront server
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5173

DEFAULT_PRODUCT_PAGE_SIZE = 50


@dataclass
class AuthSettings:
    """Authorization server and client registration."""

    auth_server_url: str = DEFAULT_AUTH_SERVER_URL
    client_id: str = DEFAULT_CLIENT_ID
    scopes: str = DEFAULT_SCOPES  # space-delimited
    callback_path: str = DEFAULT_CALLBACK_PATH

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.auth_server_url.rstrip('/')}/oauth2/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.auth_server_url.rstrip('/')}/oauth2/token"

    @property
    def logout_endpoint(self) -> str:
        return f"{self.auth_server_url.rstrip('/')}/connect/logout"


@dataclass
class ServerSettings:
    """Local storefront server settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def origin(self) -> str:
        return f"http://{self.host}:{self.port}"


@dataclass
class Config:
    """Main configuration object."""

    api_url: str = DEFAULT_API_URL
    auth: AuthSettings = field(default_factory=AuthSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    product_page_size: int = DEFAULT_PRODUCT_PAGE_SIZE
    remember_login: bool = False  # Keep the access token in the system keyring
    open_browser: bool = True
    debug_mode: bool = False
    request_timeout: Optional[float] = None  # None = transport default

    @property
    def redirect_uri(self) -> str:
        """Where the authorization server sends the browser back to."""
        return f"{self.server.origin}{self.auth.callback_path}"

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the configuration directory path."""
        return Path(user_config_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_data_dir(cls) -> Path:
        """Get the data directory path (for the durable cart store)."""
        return Path(user_data_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_log_dir(cls) -> Path:
        """Get the log directory path."""
        return Path(user_log_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_config_file(cls) -> Path:
        """Get the config file path."""
        return cls.get_config_dir() / "config.json"

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "Config":
        """Load config from file, or return defaults.

        Environment variables VOIDMARKET_API_URL and
        VOIDMARKET_AUTH_SERVER_URL override the file.
        """
        config_file = config_file or cls.get_config_file()
        config = cls()
        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    data = json.load(f)
                config = cls._from_dict(data)
            except Exception as e:
                logger.warning(f"Failed to load config: {e}, using defaults")
                config = cls()

        env_api_url = os.getenv("VOIDMARKET_API_URL")
        if env_api_url:
            config.api_url = env_api_url
        env_auth_url = os.getenv("VOIDMARKET_AUTH_SERVER_URL")
        if env_auth_url:
            config.auth.auth_server_url = env_auth_url
        return config

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        auth_data = data.pop("auth", {})
        server_data = data.pop("server", {})

        return cls(
            auth=AuthSettings(
                **{k: v for k, v in auth_data.items() if k in AuthSettings.__dataclass_fields__}
            ),
            server=ServerSettings(
                **{k: v for k, v in server_data.items() if k in ServerSettings.__dataclass_fields__}
            ),
            **{k: v for k, v in data.items() if k in cls.__dataclass_fields__},
        )

    def save(self, config_file: Optional[Path] = None) -> None:
        """Save config to file."""
        config_file = config_file or self.get_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)

        data = asdict(self)
        with open(config_file, "w") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Config saved to {config_file}")


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    log_dir = Config.get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "voidmarket.log"

    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )

    # Reduce noise from libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
