"""Browser-based OAuth authorization code flow with PKCE.

The login is split across a full browser navigation:

1. start_login() stores a fresh verifier (and state) and sends the browser
   to the authorization server.
2. The user signs in there and is redirected back to the callback URL.
3. handle_return() consumes the stored verifier exactly once and exchanges
   the authorization code for an access token.

Only the PENDING phase is persisted (as the stored verifier), so a fresh
process can tell that a login was in flight. Token exchange failures are
not raised: the caller sees "still logged out" and the phase is FAILED.
"""

import logging
import secrets
import webbrowser
from enum import Enum
from typing import Callable, Optional
from urllib.parse import parse_qs, quote, urlencode, urlparse

import requests

from ..config import AuthSettings
from ..storage import SessionStore
from .pkce import base64url_encode, compute_code_challenge, generate_code_verifier

__all__ = ["PKCEFlow", "FlowPhase", "TOKEN_KEY", "VERIFIER_KEY", "STATE_KEY"]

logger = logging.getLogger(__name__)

TOKEN_KEY = "shop_access_token"
VERIFIER_KEY = "pkce_verifier"
STATE_KEY = "pkce_state"


class FlowPhase(Enum):
    """Where the current login attempt stands."""

    IDLE = "idle"
    PENDING = "pending"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class PKCEFlow:
    """Drives the two-leg authorization code + PKCE protocol.

    Only one login attempt may be in flight at a time: start_login()
    unconditionally replaces any previously stored verifier.
    """

    def __init__(
        self,
        settings: AuthSettings,
        redirect_uri: str,
        session_store: SessionStore,
        token_store: Optional[SessionStore] = None,
        navigate: Optional[Callable[[str], object]] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the flow.

        Args:
            settings: Authorization server endpoints and client registration
            redirect_uri: Callback URL registered for this client
            session_store: Holds the PKCE verifier/state across navigation
            token_store: Holds the access token (defaults to session_store)
            navigate: Called with a URL to hand control to the browser
            session: Optional requests session (for dependency injection/testing)
            timeout: Token request timeout in seconds (None = no timeout)
        """
        self.settings = settings
        self.redirect_uri = redirect_uri
        self._session_store = session_store
        self._token_store = token_store or session_store
        self._navigate = navigate or webbrowser.open
        self._session = session or requests.Session()
        self.timeout = timeout
        self._outcome: Optional[FlowPhase] = None

    @property
    def phase(self) -> FlowPhase:
        """Current phase, derived from storage plus the last outcome."""
        if self._outcome is FlowPhase.EXCHANGING:
            return FlowPhase.EXCHANGING
        if self._token_store.get(TOKEN_KEY):
            return FlowPhase.AUTHENTICATED
        if self._outcome is FlowPhase.FAILED:
            return FlowPhase.FAILED
        if self._session_store.get(VERIFIER_KEY) is not None:
            return FlowPhase.PENDING
        return FlowPhase.IDLE

    @property
    def app_origin(self) -> str:
        parsed = urlparse(self.redirect_uri)
        return f"{parsed.scheme}://{parsed.netloc}"

    def authorization_url(self, code_challenge: str, state: str) -> str:
        """Build the authorization endpoint URL for one attempt."""
        params = {
            "response_type": "code",
            "client_id": self.settings.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.settings.scopes,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "state": state,
        }
        return f"{self.settings.authorize_endpoint}?{urlencode(params)}"

    def start_login(self) -> None:
        """Begin a login attempt and navigate to the authorization server."""
        code_verifier = generate_code_verifier()
        code_challenge = compute_code_challenge(code_verifier)
        state = base64url_encode(secrets.token_bytes(32))

        self._session_store.set(VERIFIER_KEY, code_verifier)
        self._session_store.set(STATE_KEY, state)
        self._outcome = None

        logger.info("Redirecting to authorization server (with PKCE)")
        self._navigate(self.authorization_url(code_challenge, state))

    def handle_return(self, url: str) -> None:
        """Complete a login from the callback URL.

        A URL without a ``code`` parameter is not a callback: nothing is
        read, written or sent. Failures leave the token absent.
        """
        params = parse_qs(urlparse(url).query)
        code = params.get("code", [None])[0]
        if not code:
            error = params.get("error", [None])[0]
            if error:
                logger.warning(f"Authorization failed: {error}")
                self._outcome = FlowPhase.FAILED
            return

        # Read-once: the verifier is gone whatever the exchange outcome
        code_verifier = self._session_store.get(VERIFIER_KEY)
        expected_state = self._session_store.get(STATE_KEY)
        self._session_store.clear(VERIFIER_KEY)
        self._session_store.clear(STATE_KEY)

        returned_state = params.get("state", [None])[0]
        if expected_state and returned_state and returned_state != expected_state:
            logger.warning("State parameter mismatch - refusing code exchange")
            self._outcome = FlowPhase.FAILED
            return

        if code_verifier is None:
            logger.warning("No stored PKCE verifier; exchange will be rejected")

        self._outcome = FlowPhase.EXCHANGING
        access_token = self._exchange_code(code, code_verifier or "")
        if access_token:
            self._token_store.set(TOKEN_KEY, access_token)
            self._outcome = None
            logger.info("Login successful")
        else:
            self._outcome = FlowPhase.FAILED

    def _exchange_code(self, code: str, code_verifier: str) -> Optional[str]:
        """POST the code and verifier to the token endpoint.

        Returns:
            The access token, or None on any failure
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.settings.client_id,
            "code_verifier": code_verifier,
        }
        try:
            response = self._session.post(
                self.settings.token_endpoint,
                data=data,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            if not response.ok:
                logger.warning(f"Token exchange rejected ({response.status_code})")
                return None
            token_data = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Token exchange failed: {e}")
            return None
        except ValueError:
            logger.warning("Token response is not valid JSON")
            return None

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token:
            logger.warning("Token response missing 'access_token' field")
            return None
        return access_token

    def logout(self) -> None:
        """Forget the token and end the session at the authorization server."""
        self._token_store.clear(TOKEN_KEY)
        self._outcome = None
        logger.info("Logged out")

        redirect = quote(self.app_origin, safe="")
        self._navigate(
            f"{self.settings.logout_endpoint}?post_logout_redirect_uri={redirect}"
        )

    @property
    def token(self) -> Optional[str]:
        return self._token_store.get(TOKEN_KEY)

    def is_authenticated(self) -> bool:
        """Check if an access token is stored. No network call."""
        return bool(self.token)

    def auth_header(self) -> Optional[str]:
        """Authorization header value, or None when logged out."""
        token = self.token
        return f"Bearer {token}" if token else None

    def last_login_failed(self) -> bool:
        return self.phase is FlowPhase.FAILED

    def close(self) -> None:
        self._session.close()
