"""Authorization code to token exchange."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from dauth.relying_party.models.errors import TokenError
from dauth.relying_party.models.tokens import TokenRequest, TokenResponse

logger = logging.getLogger(__name__)


class TokenManager:
    """Exchanges authorization codes at the token endpoint.

    Requests are form encoded and carry the PKCE code_verifier that matches
    the code_challenge the login was started with.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def exchange_code_for_token(self, token_request: TokenRequest) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Returns:
            TokenResponse: Parsed response, which may be an error response

        Raises:
            TokenError: On transport failures or unparseable responses
        """
        logger.debug(f"Exchanging authorization code at {token_request.token_endpoint}")

        try:
            response = await self._http_client.post(
                token_request.token_endpoint,
                data=token_request.to_form_data(),
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise TokenError(
                f"HTTP error during token exchange: {type(e).__name__}"
            ) from e

        return self._parse_token_response(response)

    def _parse_token_response(self, response: httpx.Response) -> TokenResponse:
        try:
            token_response = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TokenError("Invalid token response format") from e

        if response.status_code == 200:
            if token_response.access_token is None:
                raise TokenError("Token response missing required access_token")
            logger.info("Token exchange successful")
        else:
            logger.warning(
                f"Token exchange failed with {response.status_code}: "
                f"{token_response.error or 'unknown_error'}"
            )
            if token_response.error is None:
                token_response = token_response.model_copy(
                    update={"error": "unknown_error"}
                )

        return token_response

    async def close(self) -> None:
        await self._http_client.aclose()
