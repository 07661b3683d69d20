from unittest.mock import AsyncMock

import pytest

from dauth.login.coordinator import SignatureCoordinator
from dauth.login.models.params import AuthRequestParams
from dauth.login.models.wallet import Account, WalletHandle
from dauth.login.services.challenge import ChallengeClient
from dauth.login.services.redirect import RedirectFinalizer
from dauth.login.services.verification import VerificationClient
from dauth.login.wallet.bridge import ProviderSlot, WalletBridge


class FakeWalletProvider:
    """In-memory wallet provider that records every call."""

    def __init__(self):
        self.wallet: WalletHandle | None = WalletHandle(
            account_address="0xabc", public_key="pub-key-1"
        )
        self.signature: str | None = "signature-xyz"
        self.sign_error: Exception | None = None
        self.get_wallet_calls = 0
        self.signed_messages: list[str] = []

    async def get_wallet(self) -> WalletHandle | None:
        self.get_wallet_calls += 1
        return self.wallet

    async def sign_message(self, message: str) -> str | None:
        self.signed_messages.append(message)
        if self.sign_error is not None:
            raise self.sign_error
        return self.signature


class FakeAccountLookup:
    def __init__(self, accounts: list[Account]):
        self.accounts = accounts
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def get_user_accounts(self, address: str) -> list[Account]:
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return list(self.accounts)


class RecordingNavigator:
    def __init__(self):
        self.urls: list[str] = []
        self.error: Exception | None = None

    async def navigate(self, url: str) -> None:
        self.urls.append(url)
        if self.error is not None:
            raise self.error


@pytest.fixture
def alice():
    return Account(id=1, name="Alice", email="a@x.com")


@pytest.fixture
def bob():
    return Account(id=2, name="Bob", email="b@x.com")


@pytest.fixture
def params():
    return AuthRequestParams(
        client_id="c1", redirect_uri="https://rp.example/cb", state="xyz"
    )


@pytest.fixture
def provider():
    return FakeWalletProvider()


@pytest.fixture
def slot(provider):
    return ProviderSlot(provider)


@pytest.fixture
def account_lookup(alice):
    return FakeAccountLookup([alice])


@pytest.fixture
def bridge(slot, account_lookup):
    return WalletBridge(slot, account_lookup, poll_interval_ms=1)


@pytest.fixture
def challenge_client():
    client = AsyncMock(spec=ChallengeClient)
    client.request_challenge.return_value = "challenge-123"
    return client


@pytest.fixture
def verification_client():
    client = AsyncMock(spec=VerificationClient)
    client.verify.return_value = "AUTHCODE1"
    return client


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def statuses():
    return []


@pytest.fixture
async def coordinator(
    params, bridge, challenge_client, verification_client, navigator, statuses
):
    """Coordinator with fake collaborators and a recording status handler."""
    coord = SignatureCoordinator(
        params,
        bridge,
        challenge_client,
        verification_client,
        RedirectFinalizer(navigator),
        detection_timeout_ms=50,
    )

    async def record_status(status):
        statuses.append(status)

    coord.status_handler = record_status
    yield coord
    await coord.close()


@pytest.fixture
def ready_coordinator(coordinator):
    """Coordinator that has already reached account selection."""

    async def _ready():
        await coordinator.start()
        await coordinator.wait_until_settled()
        return coordinator

    return _ready
