"""Base HTTP client for the shop resource server."""

import logging
import threading
from typing import Any, Callable, Optional

import requests

__all__ = [
    "BaseApiClient",
    "ShopClientError",
    "ShopAuthError",
    "ShopConnectionError",
]

logger = logging.getLogger(__name__)


class ShopClientError(Exception):
    """Shop API error."""

    pass


class ShopAuthError(ShopClientError):
    """Authentication error (401/403)."""

    pass


class ShopConnectionError(ShopClientError):
    """Network/transport failure."""

    pass


class BaseApiClient:
    """Base HTTP client.

    Handles:
    - Session management (one session per thread unless injected)
    - Bearer authentication headers
    - Error handling and classification

    Requests are never retried automatically; every failure is surfaced
    so the user can retry the action.
    """

    USER_AGENT = "VoidMarket/1.0.0"

    def __init__(
        self,
        api_url: str,
        auth_header: Optional[Callable[[], Optional[str]]] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize base API client.

        Args:
            api_url: Resource server API base URL, e.g. "http://localhost:8080/api"
            auth_header: Returns the Authorization header value, or None
            timeout: Request timeout in seconds (None = transport default)
            session: Optional requests session (for dependency injection/testing)
        """
        self.api_url = api_url.rstrip("/")
        self._auth_header = auth_header
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None  # Track if we created the session
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _get_session(self) -> requests.Session:
        """Get the injected session, or a thread-local one we own."""
        if self._session is not None:
            return self._session
        if not hasattr(self._local, "session"):
            self._local.session = requests.Session()
            with self._sessions_lock:
                self._sessions.append(self._local.session)
        return self._local.session

    def _get_headers(self, authenticated: bool = False) -> dict:
        """Get request headers, with the bearer token when asked for."""
        headers = {
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        }
        if authenticated and self._auth_header is not None:
            value = self._auth_header()
            if value:
                headers["Authorization"] = value
        return headers

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        data: Optional[dict] = None,
        authenticated: bool = False,
    ) -> Any:
        """Make request to the shop API.

        Args:
            method: HTTP method
            endpoint: API endpoint (relative to api_url)
            params: Query parameters
            data: JSON request body
            authenticated: Whether to send the bearer token

        Returns:
            Decoded JSON body (None for an empty body)

        Raises:
            ShopAuthError: For 401/403 responses
            ShopConnectionError: When the server cannot be reached
            ShopClientError: For other errors
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        kwargs: dict = {
            "timeout": self.timeout,
            "headers": self._get_headers(authenticated),
        }
        if params:
            kwargs["params"] = params
        if data is not None:
            kwargs["json"] = data

        try:
            response = self._get_session().request(method, url, **kwargs)
        except requests.exceptions.ConnectionError as e:
            raise ShopConnectionError("Cannot connect to shop API") from e
        except requests.exceptions.Timeout as e:
            raise ShopConnectionError("Request timed out") from e
        except requests.exceptions.RequestException as e:
            raise ShopConnectionError(f"Request failed: {e}") from e

        if response.status_code == 401:
            raise ShopAuthError("Invalid or expired access token")
        if response.status_code == 403:
            raise ShopAuthError("Not authorized")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            error_detail = ""
            try:
                body = response.json()
                if isinstance(body, dict):
                    error_detail = body.get("message") or body.get("detail") or ""
            except ValueError:
                pass
            raise ShopClientError(
                f"API error ({response.status_code}): {error_detail or str(e)}"
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ShopClientError("Invalid JSON in API response") from e

    def close(self) -> None:
        """Close the sessions we own."""
        if not self._owns_session:
            return
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    def __enter__(self) -> "BaseApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
