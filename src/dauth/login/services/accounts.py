"""Account directory lookups against the authorization server."""

from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from dauth.config import PortalSettings
from dauth.login.models.errors import AccountLookupFailed
from dauth.login.models.wallet import Account

logger = logging.getLogger(__name__)

_accounts_adapter = TypeAdapter(list[Account])


class AccountDirectory:
    """Enumerates the accounts registered for a wallet address."""

    def __init__(self, accounts_endpoint: str, timeout: float = 30.0):
        self.accounts_endpoint = accounts_endpoint
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: PortalSettings) -> AccountDirectory:
        return cls(
            settings.auth_url(settings.accounts_path), timeout=settings.http_timeout
        )

    async def get_user_accounts(self, address: str) -> list[Account]:
        """Fetch accounts for a wallet address.

        The server may answer with a bare list or ``{"accounts": [...]}``.
        An unknown address yields an empty list.

        Raises:
            AccountLookupFailed: On transport errors or malformed responses
        """
        logger.debug(f"Looking up accounts for wallet {address}")

        try:
            response = await self._http_client.get(
                self.accounts_endpoint,
                params={"address": address},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise AccountLookupFailed(
                f"HTTP error during account lookup: {type(e).__name__}"
            ) from e
        except Exception as e:
            raise AccountLookupFailed(
                f"Unexpected error during account lookup: {type(e).__name__}"
            ) from e

        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise AccountLookupFailed(
                f"Account lookup failed with status {response.status_code}"
            )

        try:
            data = response.json()
            if isinstance(data, dict):
                data = data.get("accounts", [])
            accounts = _accounts_adapter.validate_python(data)
        except (ValueError, ValidationError) as e:
            raise AccountLookupFailed("Invalid account lookup response format") from e

        logger.info(f"Found {len(accounts)} account(s) for wallet {address}")
        return accounts

    async def close(self) -> None:
        await self._http_client.aclose()
