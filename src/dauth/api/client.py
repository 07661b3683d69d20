"""Authenticated API client for the relying party's backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dauth.api.credentials import BearerAuth, CredentialHolder
from dauth.config import PortalSettings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised when an API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApiClient:
    """JSON API client that authenticates with a ``CredentialHolder``."""

    def __init__(
        self,
        base_url: str,
        credentials: CredentialHolder,
        timeout: float = 30.0,
        profile_path: str = "/api/user/profile",
    ):
        self.credentials = credentials
        self.profile_path = profile_path
        self._http_client = httpx.AsyncClient(
            base_url=base_url,
            auth=BearerAuth(credentials),
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    @classmethod
    def from_settings(
        cls, settings: PortalSettings, credentials: CredentialHolder
    ) -> ApiClient:
        return cls(
            settings.auth_server_url,
            credentials,
            timeout=settings.http_timeout,
            profile_path=settings.profile_path,
        )

    async def request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: On transport errors or non-2xx responses
        """
        try:
            response = await self._http_client.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"HTTP error calling {endpoint}: {type(e).__name__}") from e

        if response.status_code == 401:
            logger.error("Unauthorized - token may be expired")
        if not response.is_success:
            raise ApiError(
                f"{method} {endpoint} failed with status {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()

    async def get(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", endpoint, json=data, **kwargs)

    async def put(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", endpoint, json=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)

    async def fetch_profile(self) -> dict[str, Any]:
        """Fetch the signed-in user's profile."""
        return await self.get(self.profile_path)

    async def close(self) -> None:
        await self._http_client.aclose()
