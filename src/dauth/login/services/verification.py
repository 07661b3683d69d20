"""Signature verification service.

Submits a signed challenge to the authorization server in exchange for a
short-lived authorization code.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from dauth.config import PortalSettings
from dauth.login.models.challenge import VerificationRequest, VerificationResponse
from dauth.login.models.errors import VerificationFailed

logger = logging.getLogger(__name__)


class VerificationClient:
    """Verifies wallet signatures with the authorization server.

    Error messages raised from here carry only status codes and exception
    class names. The signature, the challenge and the response body never
    end up in them.
    """

    def __init__(self, verify_endpoint: str, timeout: float = 30.0):
        """Initialize verification client.

        Args:
            verify_endpoint: Absolute URL of the verification endpoint
            timeout: HTTP request timeout in seconds
        """
        self.verify_endpoint = verify_endpoint
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: PortalSettings) -> VerificationClient:
        return cls(
            settings.auth_url(settings.verify_path), timeout=settings.http_timeout
        )

    async def verify(self, request: VerificationRequest) -> str:
        """Submit a signed challenge for verification.

        Args:
            request: Wallet identity, signature and original request parameters

        Returns:
            The authorization code to hand to the relying party

        Raises:
            VerificationFailed: On any transport error or non-success response
        """
        logger.debug(
            f"Verifying signature for wallet {request.wallet_address} "
            f"(client {request.client_id})"
        )

        try:
            response = await self._http_client.post(
                self.verify_endpoint,
                json=request.to_json(),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise VerificationFailed(
                f"HTTP error during verification: {type(e).__name__}"
            ) from e
        except Exception as e:
            raise VerificationFailed(
                f"Unexpected error during verification: {type(e).__name__}"
            ) from e

        if response.status_code != 200:
            logger.warning(f"Verification rejected with status {response.status_code}")
            raise VerificationFailed(
                f"Verification failed with status {response.status_code}"
            )

        try:
            code = VerificationResponse.model_validate(response.json()).code
        except (ValueError, ValidationError) as e:
            raise VerificationFailed("Invalid verification response format") from e

        if not code:
            raise VerificationFailed("Verification response contained no code")

        logger.info(f"Signature verified for wallet {request.wallet_address}")
        return code

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
