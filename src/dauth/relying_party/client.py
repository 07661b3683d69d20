"""Relying-party client for "Login with DAuth".

Starts a wallet login by sending the user to the portal, then turns the
callback into tokens:

1. ``start_login`` creates PKCE parameters and state and returns the
   portal login URL plus a ``PendingLogin`` to keep until the callback
2. The portal runs the wallet handshake and redirects back with
   ``code`` and ``state``
3. ``complete_login`` validates the state and exchanges the code
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlparse

from dauth.config import PortalSettings
from dauth.relying_party.models.errors import (
    AuthorizationCallbackError,
    AuthorizationError,
    TokenError,
)
from dauth.relying_party.models.flow import (
    CallbackResponse,
    LoginRequest,
    PendingLogin,
)
from dauth.relying_party.models.tokens import TokenRequest, TokenState
from dauth.relying_party.pkce import PKCEManager
from dauth.relying_party.security import generate_state, validate_state
from dauth.relying_party.tokens import TokenManager

logger = logging.getLogger(__name__)


class RelyingPartyClient:
    def __init__(
        self,
        portal_url: str,
        token_endpoint: str,
        client_id: str,
        redirect_uri: str,
        timeout: float = 30.0,
    ):
        """Initialize the relying-party client.

        Args:
            portal_url: Base URL of the DAuth portal hosting ``/login``
            token_endpoint: Absolute URL of the token endpoint
            client_id: This application's registered client id
            redirect_uri: Where the portal sends the user back to
            timeout: HTTP request timeout in seconds
        """
        self.portal_url = portal_url.rstrip("/")
        self.token_endpoint = token_endpoint
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self._pkce_manager = PKCEManager()
        self.token_manager = TokenManager(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: PortalSettings) -> RelyingPartyClient:
        if not settings.client_id:
            raise ValueError("DAUTH_CLIENT_ID must be set for the relying-party client")
        return cls(
            settings.portal_url,
            settings.auth_url(settings.token_path),
            settings.client_id,
            settings.redirect_uri,
            timeout=settings.http_timeout,
        )

    def start_login(self) -> tuple[str, PendingLogin]:
        """Create a login URL and the state to keep until the callback."""
        pkce = self._pkce_manager.generate_parameters()
        state = generate_state()

        login_url = LoginRequest(
            login_endpoint=f"{self.portal_url}/login",
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            state=state,
            code_challenge=pkce.code_challenge,
            code_challenge_method=pkce.code_challenge_method,
        ).build_login_url()

        logger.info(f"Starting DAuth login for client {self.client_id}")
        return login_url, PendingLogin(
            state=state, pkce=pkce, redirect_uri=self.redirect_uri
        )

    def handle_callback(self, callback_url: str, pending: PendingLogin) -> str:
        """Validate the callback and return its authorization code.

        Raises:
            StateValidationError: If state is missing or mismatched
            AuthorizationError: If the portal reported an error
            AuthorizationCallbackError: If the callback carries no code
        """
        response = self._parse_callback_url(callback_url)

        validate_state(pending.state, response.state)

        if response.is_error():
            raise AuthorizationError(
                f"Authorization failed: {response.error} "
                f"({response.error_description or ''})"
            )
        if not response.is_success():
            raise AuthorizationCallbackError("Callback missing authorization code")

        return response.code

    async def exchange_code(self, code: str, pending: PendingLogin) -> TokenState:
        """Exchange an authorization code for tokens.

        Raises:
            TokenError: If the exchange fails
        """
        token_response = await self.token_manager.exchange_code_for_token(
            TokenRequest(
                token_endpoint=self.token_endpoint,
                code=code,
                redirect_uri=pending.redirect_uri,
                client_id=self.client_id,
                code_verifier=pending.pkce.code_verifier,
            )
        )

        if not token_response.is_success():
            raise TokenError(f"Token exchange failed: {token_response.error}")

        return token_response.to_token_state()

    async def complete_login(
        self, callback_url: str, pending: PendingLogin
    ) -> TokenState:
        """Handle the callback and exchange its code in one step."""
        code = self.handle_callback(callback_url, pending)
        tokens = await self.exchange_code(code, pending)
        logger.info(f"DAuth login completed for client {self.client_id}")
        return tokens

    def _parse_callback_url(self, callback_url: str) -> CallbackResponse:
        try:
            query_params = parse_qs(urlparse(callback_url).query)
        except ValueError as e:
            raise AuthorizationCallbackError(
                f"Failed to parse callback URL: {e}"
            ) from e

        def get_single_param(key: str) -> str | None:
            values = query_params.get(key, [])
            return values[0] if values else None

        return CallbackResponse(
            code=get_single_param("code"),
            state=get_single_param("state"),
            error=get_single_param("error"),
            error_description=get_single_param("error_description"),
        )

    async def close(self) -> None:
        await self.token_manager.close()
