"""Wallet challenge-response login handshake.

Drives one login attempt from wallet detection through the final redirect:

    Idle -> DetectingWallet -> EnumeratingAccounts -> AwaitingSelection
         -> RequestingChallenge -> AwaitingSignature -> Verifying
         -> Redirecting -> Completed

Any step can end in Failed(reason). Nothing retries on its own; a Retry
event from the user resets the coordinator and runs detection again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from dauth.config import PortalSettings
from dauth.login.models.challenge import VerificationRequest
from dauth.login.models.errors import (
    ChallengeRequestFailed,
    InvalidAuthRequest,
    LoginError,
    NoAccounts,
    SignatureRejected,
    WalletNotDetected,
    WalletUnreadable,
)
from dauth.login.models.events import (
    ConfirmSelection,
    HandshakeEvent,
    Retry,
    SelectAccount,
)
from dauth.login.models.params import AuthRequestParams
from dauth.login.models.state import (
    SELECTION_PROMPT,
    STATE_MESSAGES,
    FailureReason,
    HandshakeState,
    HandshakeStatus,
)
from dauth.login.models.wallet import Account, WalletHandle
from dauth.login.services.accounts import AccountDirectory
from dauth.login.services.challenge import ChallengeClient
from dauth.login.services.redirect import Navigator, RedirectFinalizer
from dauth.login.services.verification import VerificationClient
from dauth.login.wallet.bridge import ProviderSlot, WalletBridge
from dauth.telemetry.reporter import ErrorReporter

logger = logging.getLogger(__name__)

StatusHandler = Callable[[HandshakeStatus], Awaitable[None]]

DEFAULT_DETECTION_TIMEOUT_MS = 5000


class SignatureCoordinator:
    """State machine for the wallet login handshake.

    The coordinator is the only writer of handshake state. UI code reads
    ``status``, ``accounts`` and ``selected_account`` and feeds user actions
    back in as events through ``dispatch`` (or the ``select_account``,
    ``confirm`` and ``retry`` shortcuts).
    """

    def __init__(
        self,
        params: AuthRequestParams,
        bridge: WalletBridge,
        challenge_client: ChallengeClient,
        verification_client: VerificationClient,
        finalizer: RedirectFinalizer,
        detection_timeout_ms: int = DEFAULT_DETECTION_TIMEOUT_MS,
        reporter: ErrorReporter | None = None,
    ):
        """Initialize the coordinator for one page load.

        Args:
            params: Authorization parameters parsed from the inbound request
            bridge: Wallet capability
            challenge_client: Client for the challenge endpoint
            verification_client: Client for the verification endpoint
            finalizer: Performs the final redirect
            detection_timeout_ms: How long to wait for a wallet to appear
            reporter: Optional error reporter notified of failures
        """
        self.params = params
        self.bridge = bridge
        self.challenge_client = challenge_client
        self.verification_client = verification_client
        self.finalizer = finalizer
        self.detection_timeout_ms = detection_timeout_ms
        self.reporter = reporter
        self.status_handler: StatusHandler | None = None

        self._status = HandshakeStatus(HandshakeState.IDLE, "")
        self._wallet: WalletHandle | None = None
        self._accounts: tuple[Account, ...] = ()
        self._selected: Account | None = None
        self._detection_task: asyncio.Task[None] | None = None
        self._report_tasks: set[asyncio.Task[bool]] = set()

    @classmethod
    def from_settings(
        cls,
        params: AuthRequestParams,
        settings: PortalSettings,
        slot: ProviderSlot,
        navigator: Navigator | None = None,
        reporter: ErrorReporter | None = None,
    ) -> SignatureCoordinator:
        """Wire a coordinator and its clients from portal settings."""
        bridge = WalletBridge(
            slot,
            AccountDirectory.from_settings(settings),
            poll_interval_ms=settings.wallet_poll_interval_ms,
        )
        return cls(
            params,
            bridge,
            ChallengeClient.from_settings(settings),
            VerificationClient.from_settings(settings),
            RedirectFinalizer(navigator),
            detection_timeout_ms=settings.wallet_detection_timeout_ms,
            reporter=reporter,
        )

    # ================================
    # Read-only view
    # ================================

    @property
    def state(self) -> HandshakeState:
        return self._status.state

    @property
    def status(self) -> HandshakeStatus:
        return self._status

    @property
    def wallet(self) -> WalletHandle | None:
        return self._wallet

    @property
    def accounts(self) -> tuple[Account, ...]:
        return self._accounts

    @property
    def selected_account(self) -> Account | None:
        return self._selected

    # ================================
    # Lifecycle
    # ================================

    async def start(self) -> None:
        """Start wallet detection for this page load.

        Runs at most once until the user retries. Repeated calls, such as a
        component mounting twice, are ignored while a detection has already
        been started.
        """
        if self._detection_task is not None:
            logger.debug("Wallet detection already started, skipping")
            return

        logger.debug("Starting wallet detection")
        self._detection_task = asyncio.create_task(self._detect())

    async def wait_until_settled(self) -> None:
        """Wait for the in-flight detection step, if any, to finish."""
        if self._detection_task is not None:
            await self._detection_task

    async def close(self) -> None:
        """Abandon in-flight work, as navigating away from the page does."""
        if self._detection_task is not None and not self._detection_task.done():
            self._detection_task.cancel()
            try:
                await self._detection_task
            except asyncio.CancelledError:
                pass

        if self._report_tasks:
            await asyncio.gather(*self._report_tasks, return_exceptions=True)

    # ================================
    # Events
    # ================================

    async def dispatch(self, event: HandshakeEvent) -> None:
        """Consume one user-driven event."""
        if isinstance(event, SelectAccount):
            self._select(event.account)
        elif isinstance(event, ConfirmSelection):
            await self._confirm()
        elif isinstance(event, Retry):
            await self._retry()
        else:
            raise TypeError(f"Unknown handshake event: {event!r}")

    async def select_account(self, account: Account | None) -> None:
        await self.dispatch(SelectAccount(account))

    async def confirm(self) -> None:
        await self.dispatch(ConfirmSelection())

    async def retry(self) -> None:
        await self.dispatch(Retry())

    def _select(self, account: Account | None) -> None:
        if self.state is not HandshakeState.AWAITING_SELECTION:
            logger.debug(f"Ignoring account selection in state {self.state.value}")
            return

        if account is not None and account not in self._accounts:
            raise ValueError(f"Account {account.id} is not one of the wallet's accounts")

        logger.debug(f"Account selected: {account.id if account else None}")
        self._selected = account

    async def _confirm(self) -> None:
        if self.state is not HandshakeState.AWAITING_SELECTION:
            logger.debug(f"Ignoring confirmation in state {self.state.value}")
            return

        if self._selected is None:
            await self._publish(
                HandshakeStatus(HandshakeState.AWAITING_SELECTION, SELECTION_PROMPT)
            )
            return

        await self._login(self._selected)

    async def _retry(self) -> None:
        if self.state is not HandshakeState.FAILED:
            logger.debug(f"Ignoring retry in state {self.state.value}")
            return

        logger.info("Retrying wallet login")
        self._wallet = None
        self._accounts = ()
        self._selected = None
        self._detection_task = None
        await self._transition(HandshakeState.IDLE)
        await self.start()

    # ================================
    # Handshake steps
    # ================================

    async def _detect(self) -> None:
        await self._transition(HandshakeState.DETECTING_WALLET)

        try:
            if not self.bridge.is_available():
                logger.warning("Wallet provider not detected. Waiting...")
                available = await self.bridge.wait_for_availability(
                    self.detection_timeout_ms
                )
                if not available:
                    raise WalletNotDetected(
                        f"No wallet provider within {self.detection_timeout_ms} ms"
                    )

            wallet = await self.bridge.get_wallet()
            if wallet is None or not wallet.is_readable:
                raise WalletUnreadable("Wallet returned no account address")

            await self._transition(HandshakeState.ENUMERATING_ACCOUNTS)
            accounts = await self.bridge.get_user_accounts(wallet.account_address)
            if not accounts:
                raise NoAccounts(f"No accounts for wallet {wallet.account_address}")

        except LoginError as e:
            await self._fail(e)
            return

        logger.info(f"Wallet {wallet.account_address} has {len(accounts)} account(s)")
        self._wallet = wallet
        self._accounts = tuple(accounts)
        await self._transition(HandshakeState.AWAITING_SELECTION)

    async def _login(self, account: Account) -> None:
        await self._transition(HandshakeState.REQUESTING_CHALLENGE)

        try:
            try:
                self.params.require_client()
            except InvalidAuthRequest as e:
                raise ChallengeRequestFailed(str(e)) from e

            challenge = await self.challenge_client.request_challenge(self.params)

            await self._transition(HandshakeState.AWAITING_SIGNATURE)
            signature = await self.bridge.sign(challenge)
            if not signature:
                raise SignatureRejected("Wallet returned no signature")

            await self._transition(HandshakeState.VERIFYING)
            code = await self.verification_client.verify(
                VerificationRequest(
                    wallet_address=self._wallet.account_address,
                    public_key=self._wallet.public_key,
                    signature=signature,
                    client_id=self.params.client_id,
                    redirect_uri=self.params.redirect_uri,
                    state=self.params.state,
                    email=account.email,
                )
            )

        except LoginError as e:
            await self._fail(e)
            return

        await self._transition(HandshakeState.REDIRECTING)
        try:
            await self.finalizer.finalize(
                self.params.redirect_uri, code, self.params.state
            )
        except Exception as e:
            logger.warning(f"Redirect to relying party failed: {type(e).__name__}")
            raise
        await self._transition(HandshakeState.COMPLETED)

    # ================================
    # State changes
    # ================================

    async def _transition(self, state: HandshakeState) -> None:
        logger.debug(f"Handshake state: {self.state.value} -> {state.value}")
        await self._publish(HandshakeStatus(state, STATE_MESSAGES[state]))

    async def _fail(self, error: LoginError) -> None:
        reason = error.reason or FailureReason.VERIFICATION_FAILED
        logger.warning(f"Wallet login failed in {self.state.value}: {reason.value}")
        await self._publish(
            HandshakeStatus(HandshakeState.FAILED, reason.message, reason)
        )

        if self.reporter is not None:
            task = asyncio.create_task(
                self.reporter.report(
                    endpoint="wallet-login",
                    message=reason.message,
                    error=f"{reason.value}: {error}",
                    metadata={"client_id": self.params.client_id},
                )
            )
            self._report_tasks.add(task)
            task.add_done_callback(self._report_tasks.discard)

    async def _publish(self, status: HandshakeStatus) -> None:
        self._status = status
        if self.status_handler:
            try:
                await self.status_handler(status)
            except Exception as e:
                logger.warning(f"Status handler failed: {e}")
