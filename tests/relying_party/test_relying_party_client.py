"""Tests for the relying-party login flow.

Covers login URL generation, callback state validation and the code
exchange that completes a login.
"""

from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from dauth.config import PortalSettings
from dauth.relying_party.client import RelyingPartyClient
from dauth.relying_party.models.errors import (
    AuthorizationCallbackError,
    AuthorizationError,
    StateValidationError,
    TokenError,
)


def make_response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


class TestStartLogin:
    def setup_method(self):
        # Arrange
        self.client = RelyingPartyClient(
            "https://portal.example/",
            "https://auth.example/oauth/token",
            "c1",
            "https://rp.example/cb",
        )

    def test_login_url_carries_pkce_and_state(self):
        # Act
        login_url, pending = self.client.start_login()

        # Assert
        parsed = urlparse(login_url)
        query_params = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://portal.example/login"
        )
        assert query_params["client_id"] == ["c1"]
        assert query_params["redirect_uri"] == ["https://rp.example/cb"]
        assert query_params["state"] == [pending.state]
        assert query_params["code_challenge"] == [pending.pkce.code_challenge]
        assert query_params["code_challenge_method"] == ["S256"]
        assert len(pending.state) == 32

    def test_each_login_gets_fresh_state(self):
        _, first = self.client.start_login()
        _, second = self.client.start_login()

        assert first.state != second.state
        assert first.pkce.code_verifier != second.pkce.code_verifier

    def test_pending_repr_hides_secrets(self):
        _, pending = self.client.start_login()

        assert pending.pkce.code_verifier not in repr(pending)
        assert pending.state not in repr(pending)


class TestHandleCallback:
    def setup_method(self):
        # Arrange
        self.client = RelyingPartyClient(
            "https://portal.example",
            "https://auth.example/oauth/token",
            "c1",
            "https://rp.example/cb",
        )
        _, self.pending = self.client.start_login()

    def test_returns_code_for_matching_state(self):
        url = f"https://rp.example/cb?code=AUTHCODE1&state={self.pending.state}"

        assert self.client.handle_callback(url, self.pending) == "AUTHCODE1"

    def test_state_mismatch_raises(self):
        with pytest.raises(StateValidationError, match="mismatch"):
            self.client.handle_callback(
                "https://rp.example/cb?code=AUTHCODE1&state=forged", self.pending
            )

    def test_missing_state_raises(self):
        with pytest.raises(StateValidationError, match="missing"):
            self.client.handle_callback(
                "https://rp.example/cb?code=AUTHCODE1", self.pending
            )

    def test_error_callback_raises(self):
        url = (
            "https://rp.example/cb?error=access_denied"
            f"&error_description=User+denied&state={self.pending.state}"
        )

        with pytest.raises(AuthorizationError, match="access_denied"):
            self.client.handle_callback(url, self.pending)

    def test_missing_code_raises(self):
        with pytest.raises(AuthorizationCallbackError):
            self.client.handle_callback(
                f"https://rp.example/cb?state={self.pending.state}", self.pending
            )


class TestCompleteLogin:
    def setup_method(self):
        # Arrange
        self.client = RelyingPartyClient(
            "https://portal.example",
            "https://auth.example/oauth/token",
            "c1",
            "https://rp.example/cb",
        )
        self.client.token_manager._http_client = AsyncMock()
        _, self.pending = self.client.start_login()

    async def test_exchanges_code_with_verifier(self):
        # Arrange
        self.client.token_manager._http_client.post.return_value = make_response(
            200,
            {
                "access_token": "access-1",
                "token_type": "Bearer",
                "expires_in": 3600,
                "id_token": "id-1",
            },
        )
        url = f"https://rp.example/cb?code=AUTHCODE1&state={self.pending.state}"

        # Act
        tokens = await self.client.complete_login(url, self.pending)

        # Assert
        assert tokens.access_token == "access-1"
        assert tokens.id_token == "id-1"
        assert tokens.is_valid()
        call_args = self.client.token_manager._http_client.post.call_args
        assert call_args[0][0] == "https://auth.example/oauth/token"
        assert call_args[1]["data"] == {
            "grant_type": "authorization_code",
            "code": "AUTHCODE1",
            "redirect_uri": "https://rp.example/cb",
            "client_id": "c1",
            "code_verifier": self.pending.pkce.code_verifier,
        }

    async def test_error_response_raises(self):
        # Arrange
        self.client.token_manager._http_client.post.return_value = make_response(
            400, {"error": "invalid_grant"}
        )

        # Act & Assert
        with pytest.raises(TokenError, match="invalid_grant"):
            await self.client.exchange_code("AUTHCODE1", self.pending)


class TestFromSettings:
    def test_requires_client_id(self):
        settings = PortalSettings(_env_file=None, client_id=None)

        with pytest.raises(ValueError, match="DAUTH_CLIENT_ID"):
            RelyingPartyClient.from_settings(settings)

    def test_wires_endpoints(self):
        settings = PortalSettings(
            _env_file=None,
            client_id="c1",
            auth_server_url="https://auth.example/",
            portal_url="https://portal.example",
        )

        client = RelyingPartyClient.from_settings(settings)

        assert client.token_endpoint == "https://auth.example/oauth/token"
        assert client.client_id == "c1"
