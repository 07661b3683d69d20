"""Wallet provider backed by a locally running wallet agent.

The agent speaks JSON over HTTP on the loopback interface:

- ``GET /health`` answers 200 when the agent is up
- ``GET /wallet`` returns ``{"accountAddress": ..., "publicKey": ...}``,
  or 204 when no account is selected
- ``POST /sign`` with ``{"message": ...}`` returns ``{"signature": ...}``;
  403 or ``{"rejected": true}`` means the user declined
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from dauth.config import PortalSettings
from dauth.login.models.errors import SignatureRejected, WalletUnavailable
from dauth.login.models.wallet import WalletHandle
from dauth.login.wallet.bridge import ProviderSlot

logger = logging.getLogger(__name__)


class AgentWalletProvider:
    """Wallet provider that talks to a wallet agent over loopback HTTP."""

    def __init__(self, agent_url: str, timeout: float = 30.0):
        """Initialize agent provider.

        Args:
            agent_url: Base URL of the wallet agent
            timeout: HTTP timeout in seconds
        """
        self.agent_url = agent_url.rstrip("/")
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: PortalSettings) -> AgentWalletProvider:
        return cls(settings.wallet_agent_url, timeout=settings.http_timeout)

    async def ping(self) -> bool:
        """Check whether the agent is reachable."""
        try:
            response = await self._http_client.get(f"{self.agent_url}/health")
        except httpx.HTTPError as e:
            logger.debug(f"Wallet agent not reachable: {type(e).__name__}")
            return False
        return response.status_code == 200

    async def attach_if_reachable(self, slot: ProviderSlot) -> bool:
        """Inject this provider into ``slot`` when the agent answers."""
        if await self.ping():
            slot.inject(self)
            return True
        return False

    async def get_wallet(self) -> WalletHandle | None:
        """Read the account currently selected in the agent.

        Returns None when the agent has no account selected.

        Raises:
            WalletUnavailable: If the agent is unreachable or answers badly
        """
        try:
            response = await self._http_client.get(
                f"{self.agent_url}/wallet", headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as e:
            raise WalletUnavailable(
                f"Wallet agent unreachable: {type(e).__name__}"
            ) from e

        if response.status_code in (204, 404):
            return None
        if response.status_code != 200:
            raise WalletUnavailable(
                f"Wallet agent returned status {response.status_code}"
            )
        try:
            return WalletHandle.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise WalletUnavailable("Wallet agent returned malformed wallet data") from e

    async def sign_message(self, message: str) -> str | None:
        """Ask the agent to sign ``message`` on the user's behalf.

        Raises:
            SignatureRejected: If the user declines
            WalletUnavailable: If the agent is unreachable or answers badly
        """
        try:
            response = await self._http_client.post(
                f"{self.agent_url}/sign",
                json={"message": message},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise WalletUnavailable(
                f"Wallet agent unreachable: {type(e).__name__}"
            ) from e

        if response.status_code in (403, 409):
            raise SignatureRejected("User declined the signature request")
        if response.status_code != 200:
            raise WalletUnavailable(
                f"Wallet agent returned status {response.status_code}"
            )

        try:
            data = response.json()
            rejected = data.get("rejected")
        except (ValueError, AttributeError) as e:
            raise WalletUnavailable("Wallet agent returned malformed signature data") from e

        if rejected:
            raise SignatureRejected("User declined the signature request")
        return data.get("signature")

    async def close(self) -> None:
        await self._http_client.aclose()
