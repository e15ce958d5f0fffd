"""Tests for the PKCE login flow."""

from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

import requests
import responses
from responses import matchers

from voidmarket.auth.flow import (
    STATE_KEY,
    TOKEN_KEY,
    VERIFIER_KEY,
    FlowPhase,
    PKCEFlow,
)
from voidmarket.auth.pkce import compute_code_challenge
from voidmarket.config import AuthSettings
from voidmarket.storage import MemoryStore

AUTH_SERVER = "http://auth.test"
TOKEN_URL = f"{AUTH_SERVER}/oauth2/token"
REDIRECT_URI = "http://127.0.0.1:5173/callback"


class TestStartLogin:
    """Tests for the authorization leg."""

    def setup_method(self):
        self.store = MemoryStore()
        self.navigate = Mock()
        self.flow = PKCEFlow(
            AuthSettings(auth_server_url=AUTH_SERVER, client_id="shop-client", scopes="openid profile"),
            REDIRECT_URI,
            session_store=self.store,
            navigate=self.navigate,
        )

    def teardown_method(self):
        self.flow.close()

    def _navigated_params(self) -> dict:
        url = self.navigate.call_args[0][0]
        return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}

    def test_navigates_to_authorize_endpoint(self):
        """Test browser is sent to {authServer}/oauth2/authorize."""
        self.flow.start_login()

        url = urlparse(self.navigate.call_args[0][0])
        assert f"{url.scheme}://{url.netloc}{url.path}" == f"{AUTH_SERVER}/oauth2/authorize"

    def test_authorization_url_parameters(self):
        """Test the authorization request carries the PKCE parameters."""
        self.flow.start_login()
        params = self._navigated_params()

        assert params["response_type"] == "code"
        assert params["client_id"] == "shop-client"
        assert params["redirect_uri"] == REDIRECT_URI
        assert params["scope"] == "openid profile"
        assert params["code_challenge_method"] == "S256"
        assert params["state"] == self.store.get(STATE_KEY)

    def test_challenge_matches_stored_verifier(self):
        """Test the sent challenge derives from the stored verifier."""
        self.flow.start_login()
        params = self._navigated_params()

        verifier = self.store.get(VERIFIER_KEY)
        assert params["code_challenge"] == compute_code_challenge(verifier)
        assert verifier not in self.navigate.call_args[0][0]

    def test_start_login_replaces_previous_verifier(self):
        """Test only one attempt is in flight at a time."""
        self.flow.start_login()
        first = self.store.get(VERIFIER_KEY)

        self.flow.start_login()

        assert self.store.get(VERIFIER_KEY) != first

    def test_phase_pending_after_start(self):
        """Test the stored verifier marks the attempt as pending."""
        assert self.flow.phase is FlowPhase.IDLE

        self.flow.start_login()

        assert self.flow.phase is FlowPhase.PENDING

    def test_pending_detected_by_fresh_flow(self):
        """Test a new flow over the same store resumes in PENDING."""
        self.flow.start_login()

        resumed = PKCEFlow(AuthSettings(auth_server_url=AUTH_SERVER), REDIRECT_URI, self.store, navigate=Mock())

        assert resumed.phase is FlowPhase.PENDING
        resumed.close()


class TestHandleReturn:
    """Tests for the code-for-token exchange leg."""

    def setup_method(self):
        self.store = MemoryStore()
        self.navigate = Mock()
        self.flow = PKCEFlow(
            AuthSettings(auth_server_url=AUTH_SERVER, client_id="shop-client"),
            REDIRECT_URI,
            session_store=self.store,
            navigate=self.navigate,
        )

    def teardown_method(self):
        self.flow.close()

    @responses.activate
    def test_no_code_is_noop(self):
        """Test a non-callback URL touches neither storage nor network."""
        self.store.set(VERIFIER_KEY, "v")
        before = dict(self.store._data)

        self.flow.handle_return("http://127.0.0.1:5173/?page=home")

        assert self.store._data == before
        assert len(responses.calls) == 0

    @responses.activate
    def test_successful_exchange_stores_token(self):
        """Test 2xx exchange persists the access token and drops the verifier."""
        self.store.set(VERIFIER_KEY, "stored-verifier")
        responses.add(
            responses.POST,
            TOKEN_URL,
            json={"access_token": "tok-123", "token_type": "Bearer"},
            status=200,
            match=[
                matchers.urlencoded_params_matcher(
                    {
                        "grant_type": "authorization_code",
                        "code": "abc",
                        "redirect_uri": REDIRECT_URI,
                        "client_id": "shop-client",
                        "code_verifier": "stored-verifier",
                    }
                )
            ],
        )

        self.flow.handle_return(f"{REDIRECT_URI}?code=abc")

        assert self.store.get(TOKEN_KEY) == "tok-123"
        assert self.store.get(VERIFIER_KEY) is None
        assert self.flow.is_authenticated() is True
        assert self.flow.phase is FlowPhase.AUTHENTICATED

    @responses.activate
    def test_verifier_consumed_exactly_once(self):
        """Test a second return finds no verifier and sends an empty one."""
        self.store.set(VERIFIER_KEY, "once")
        responses.add(responses.POST, TOKEN_URL, json={"error": "invalid_grant"}, status=400)

        self.flow.handle_return(f"{REDIRECT_URI}?code=abc")
        self.flow.handle_return(f"{REDIRECT_URI}?code=abc")

        first = parse_qs(responses.calls[0].request.body)
        second = parse_qs(responses.calls[1].request.body, keep_blank_values=True)
        assert first["code_verifier"] == ["once"]
        assert second["code_verifier"] == [""]
        assert self.store.get(VERIFIER_KEY) is None

    @responses.activate
    def test_rejected_exchange_is_silent(self):
        """Test non-2xx leaves the user logged out without raising."""
        self.store.set(VERIFIER_KEY, "v")
        responses.add(responses.POST, TOKEN_URL, json={"error": "invalid_grant"}, status=400)

        self.flow.handle_return(f"{REDIRECT_URI}?code=abc")

        assert self.flow.is_authenticated() is False
        assert self.flow.phase is FlowPhase.FAILED
        assert self.flow.last_login_failed() is True

    @responses.activate
    def test_network_failure_is_silent(self):
        """Test transport errors leave the user logged out without raising."""
        self.store.set(VERIFIER_KEY, "v")
        responses.add(
            responses.POST,
            TOKEN_URL,
            body=requests.exceptions.ConnectionError("Connection refused"),
        )

        self.flow.handle_return(f"{REDIRECT_URI}?code=abc")

        assert self.store.get(TOKEN_KEY) is None
        assert self.flow.phase is FlowPhase.FAILED

    @responses.activate
    def test_missing_access_token_is_failure(self):
        """Test a 2xx body without access_token is not a login."""
        self.store.set(VERIFIER_KEY, "v")
        responses.add(responses.POST, TOKEN_URL, json={"token_type": "Bearer"}, status=200)

        self.flow.handle_return(f"{REDIRECT_URI}?code=abc")

        assert self.flow.is_authenticated() is False

    @responses.activate
    def test_state_mismatch_refuses_exchange(self):
        """Test a callback for another attempt is not redeemed."""
        self.store.set(VERIFIER_KEY, "v")
        self.store.set(STATE_KEY, "expected")

        self.flow.handle_return(f"{REDIRECT_URI}?code=abc&state=other")

        assert len(responses.calls) == 0
        assert self.store.get(VERIFIER_KEY) is None
        assert self.flow.phase is FlowPhase.FAILED

    @responses.activate
    def test_matching_state_exchanges(self):
        """Test the echoed state lets the exchange through."""
        self.store.set(VERIFIER_KEY, "v")
        self.store.set(STATE_KEY, "expected")
        responses.add(responses.POST, TOKEN_URL, json={"access_token": "tok"}, status=200)

        self.flow.handle_return(f"{REDIRECT_URI}?code=abc&state=expected")

        assert self.flow.token == "tok"
        assert self.store.get(STATE_KEY) is None

    @responses.activate
    def test_error_callback_marks_failed(self):
        """Test an error redirect is not exchanged."""
        self.flow.handle_return(f"{REDIRECT_URI}?error=access_denied")

        assert len(responses.calls) == 0
        assert self.flow.phase is FlowPhase.FAILED

    @responses.activate
    def test_token_stored_in_separate_token_store(self):
        """Test the token lands in the token store when one is given."""
        token_store = MemoryStore()
        flow = PKCEFlow(
            AuthSettings(auth_server_url=AUTH_SERVER),
            REDIRECT_URI,
            session_store=self.store,
            token_store=token_store,
            navigate=Mock(),
        )
        responses.add(responses.POST, TOKEN_URL, json={"access_token": "tok"}, status=200)

        flow.handle_return(f"{REDIRECT_URI}?code=abc")

        assert token_store.get(TOKEN_KEY) == "tok"
        assert self.store.get(TOKEN_KEY) is None
        flow.close()


class TestSessionReads:
    """Tests for logout and auth header."""

    def setup_method(self):
        self.store = MemoryStore({TOKEN_KEY: "tok-xyz"})
        self.navigate = Mock()
        self.flow = PKCEFlow(
            AuthSettings(auth_server_url=AUTH_SERVER),
            REDIRECT_URI,
            session_store=self.store,
            navigate=self.navigate,
        )

    def teardown_method(self):
        self.flow.close()

    def test_auth_header(self):
        """Test bearer header when a token is stored."""
        assert self.flow.auth_header() == "Bearer tok-xyz"

    def test_auth_header_logged_out(self):
        """Test no header without a token."""
        self.store.clear(TOKEN_KEY)

        assert self.flow.auth_header() is None
        assert self.flow.is_authenticated() is False

    def test_logout_clears_token_and_navigates(self):
        """Test logout ends the session at the authorization server."""
        self.flow.logout()

        assert self.store.get(TOKEN_KEY) is None
        self.navigate.assert_called_once_with(
            f"{AUTH_SERVER}/connect/logout?post_logout_redirect_uri=http%3A%2F%2F127.0.0.1%3A5173"
        )
