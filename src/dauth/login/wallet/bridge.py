"""Bridge between the login handshake and an injected wallet provider.

A wallet integration injects its provider into a ``ProviderSlot`` once it
is ready, the way a browser extension injects a global into the page. The
bridge probes that slot, waits for it, and exposes the account discovery
and signing primitives the coordinator needs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import ValidationError

from dauth.login.models.errors import (
    AccountLookupFailed,
    SignatureRejected,
    WalletUnavailable,
)
from dauth.login.models.wallet import Account, WalletHandle
from dauth.login.services.accounts import AccountDirectory

logger = logging.getLogger(__name__)


class WalletProvider(Protocol):
    """Raw capability exposed by a wallet integration."""

    async def get_wallet(self) -> Mapping[str, Any] | WalletHandle | None:
        """Return the selected account's address and public key, if any."""
        ...

    async def sign_message(self, message: str) -> str | None:
        """Ask the user to sign ``message``.

        Raises:
            SignatureRejected: If the user declines
            WalletUnavailable: If the wallet cannot be reached
        """
        ...


class ProviderSlot:
    """Holds the wallet provider injected by the host environment."""

    def __init__(self, provider: WalletProvider | None = None):
        self._provider = provider

    @property
    def provider(self) -> WalletProvider | None:
        return self._provider

    def inject(self, provider: WalletProvider) -> None:
        logger.debug(f"Wallet provider injected: {type(provider).__name__}")
        self._provider = provider

    def remove(self) -> None:
        self._provider = None


class AccountLookup(Protocol):
    async def get_user_accounts(self, address: str) -> list[Account]: ...


class WalletBridge:
    """Wallet capability consumed by the signature coordinator."""

    def __init__(
        self,
        slot: ProviderSlot,
        accounts: AccountLookup | AccountDirectory,
        poll_interval_ms: int = 100,
    ):
        """Initialize wallet bridge.

        Args:
            slot: Slot the wallet integration injects its provider into
            accounts: Directory used to enumerate accounts by address
            poll_interval_ms: Delay between availability probes
        """
        self.slot = slot
        self.accounts = accounts
        self.poll_interval_ms = poll_interval_ms

    def is_available(self) -> bool:
        """Synchronously check whether a provider has been injected."""
        return self.slot.provider is not None

    async def wait_for_availability(self, timeout_ms: int) -> bool:
        """Poll until a provider is injected or ``timeout_ms`` elapses.

        Returns False on timeout and never raises.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        interval = self.poll_interval_ms / 1000

        while not self.is_available():
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.debug(f"No wallet provider after {timeout_ms} ms")
                return False
            await asyncio.sleep(min(interval, remaining))
        return True

    async def get_wallet(self) -> WalletHandle | None:
        """Return the active wallet handle, or None if none can be read."""
        provider = self.slot.provider
        if provider is None:
            return None

        try:
            raw = await provider.get_wallet()
        except WalletUnavailable as e:
            logger.warning(f"Wallet provider unavailable: {e}")
            return None
        except Exception as e:
            logger.warning(f"Wallet provider failed to report a wallet: {e}")
            return None

        if raw is None or isinstance(raw, WalletHandle):
            return raw

        try:
            return WalletHandle.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Wallet provider returned malformed data: {e}")
            return None

    async def get_user_accounts(self, address: str) -> list[Account]:
        """Enumerate accounts registered for ``address``; may be empty.

        Raises:
            AccountLookupFailed: If the lookup fails for any reason
        """
        try:
            return list(await self.accounts.get_user_accounts(address))
        except AccountLookupFailed:
            raise
        except Exception as e:
            raise AccountLookupFailed(
                f"Account lookup failed: {type(e).__name__}"
            ) from e

    async def sign(self, challenge: str) -> str | None:
        """Request a signature over ``challenge`` from the wallet.

        Returns whatever the provider returns, which may be falsy if the
        wallet closed the prompt without an answer.

        Raises:
            SignatureRejected: If the user declines
            WalletUnavailable: If the provider is gone or fails
        """
        provider = self.slot.provider
        if provider is None:
            raise WalletUnavailable("Wallet provider disappeared")

        try:
            return await provider.sign_message(challenge)
        except (SignatureRejected, WalletUnavailable):
            raise
        except Exception as e:
            raise WalletUnavailable(
                f"Wallet provider failed to sign: {type(e).__name__}"
            ) from e
