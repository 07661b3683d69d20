"""Challenge request service.

Asks the authorization server for a single-use challenge bound to the
inbound OAuth-style parameters.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from dauth.config import PortalSettings
from dauth.login.models.challenge import ChallengeResponse
from dauth.login.models.errors import ChallengeRequestFailed, InvalidAuthRequest
from dauth.login.models.params import AuthRequestParams

logger = logging.getLogger(__name__)


class ChallengeClient:
    """Requests authentication challenges from the authorization server.

    All five request parameters are forwarded verbatim; the server binds the
    challenge to them so it cannot be replayed for another client, redirect
    URI or state.
    """

    def __init__(self, challenge_endpoint: str, timeout: float = 30.0):
        """Initialize challenge client.

        Args:
            challenge_endpoint: Absolute URL of the challenge endpoint
            timeout: HTTP request timeout in seconds
        """
        self.challenge_endpoint = challenge_endpoint
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: PortalSettings) -> ChallengeClient:
        return cls(
            settings.auth_url(settings.challenge_path), timeout=settings.http_timeout
        )

    async def request_challenge(self, params: AuthRequestParams) -> str:
        """Request a challenge for the given authorization parameters.

        Args:
            params: Parsed inbound request parameters

        Returns:
            The opaque challenge value to be signed

        Raises:
            ChallengeRequestFailed: If parameters are incomplete or the server
                does not return a challenge
        """
        try:
            params.require_client()
        except InvalidAuthRequest as e:
            raise ChallengeRequestFailed(str(e)) from e

        logger.debug(
            f"Requesting challenge for client {params.client_id} "
            f"at {self.challenge_endpoint}"
        )

        try:
            response = await self._http_client.post(
                self.challenge_endpoint,
                json=params.to_challenge_payload(),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ChallengeRequestFailed(
                f"HTTP error during challenge request: {type(e).__name__}"
            ) from e
        except Exception as e:
            raise ChallengeRequestFailed(
                f"Unexpected error during challenge request: {type(e).__name__}"
            ) from e

        return self._parse_challenge_response(response)

    def _parse_challenge_response(self, response: httpx.Response) -> str:
        if response.status_code != 200:
            logger.warning(
                f"Challenge request failed with status {response.status_code}"
            )
            raise ChallengeRequestFailed(
                f"Challenge request failed with status {response.status_code}"
            )

        try:
            challenge = ChallengeResponse.model_validate(response.json()).challenge
        except (ValueError, ValidationError) as e:
            raise ChallengeRequestFailed("Invalid challenge response format") from e

        if not challenge:
            raise ChallengeRequestFailed("Challenge response contained no challenge")

        logger.info("Challenge issued")
        return challenge

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
