"""Handshake states, failure reasons and the status snapshot shown to the UI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HandshakeState(str, Enum):
    IDLE = "idle"
    DETECTING_WALLET = "detecting_wallet"
    ENUMERATING_ACCOUNTS = "enumerating_accounts"
    AWAITING_SELECTION = "awaiting_selection"
    REQUESTING_CHALLENGE = "requesting_challenge"
    AWAITING_SIGNATURE = "awaiting_signature"
    VERIFYING = "verifying"
    REDIRECTING = "redirecting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (HandshakeState.COMPLETED, HandshakeState.FAILED)


class FailureReason(str, Enum):
    """Why a handshake attempt ended in ``HandshakeState.FAILED``."""

    WALLET_NOT_DETECTED = "WalletNotDetected"
    WALLET_UNREADABLE = "WalletUnreadable"
    NO_ACCOUNTS = "NoAccounts"
    ACCOUNT_LOOKUP_FAILED = "AccountLookupFailed"
    CHALLENGE_REQUEST_FAILED = "ChallengeRequestFailed"
    SIGNATURE_REJECTED = "SignatureRejected"
    VERIFICATION_FAILED = "VerificationFailed"

    @property
    def message(self) -> str:
        """User-readable text for this failure."""
        return FAILURE_MESSAGES[self]


FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.WALLET_NOT_DETECTED: (
        "NCOG wallet extension not detected. "
        "Please install or enable the NCOG extension."
    ),
    FailureReason.WALLET_UNREADABLE: (
        "Could not connect to wallet. Please ensure the NCOG extension is "
        "enabled and an account is selected."
    ),
    FailureReason.NO_ACCOUNTS: (
        "No active accounts found for this wallet address. "
        "Please register an account first."
    ),
    FailureReason.ACCOUNT_LOOKUP_FAILED: (
        "Error retrieving accounts. Please try again."
    ),
    FailureReason.CHALLENGE_REQUEST_FAILED: (
        "Could not start authentication. Please try again."
    ),
    FailureReason.SIGNATURE_REJECTED: "Signature rejected or wallet unavailable.",
    FailureReason.VERIFICATION_FAILED: "Authentication failed. Please try again.",
}

# Progress text published on entry to each non-terminal state.
STATE_MESSAGES: dict[HandshakeState, str] = {
    HandshakeState.IDLE: "",
    HandshakeState.DETECTING_WALLET: "Looking for your wallet...",
    HandshakeState.ENUMERATING_ACCOUNTS: "Loading your accounts...",
    HandshakeState.AWAITING_SELECTION: "Select the account you want to use to sign in.",
    HandshakeState.REQUESTING_CHALLENGE: "Requesting challenge...",
    HandshakeState.AWAITING_SIGNATURE: "Waiting for wallet signature...",
    HandshakeState.VERIFYING: "Verifying...",
    HandshakeState.REDIRECTING: "Redirecting...",
    HandshakeState.COMPLETED: "Signed in.",
}

SELECTION_PROMPT = "Please select an account to continue."


@dataclass(frozen=True)
class HandshakeStatus:
    """Immutable snapshot of the handshake published to status handlers."""

    state: HandshakeState
    message: str
    reason: FailureReason | None = None

    @property
    def can_retry(self) -> bool:
        return self.state is HandshakeState.FAILED
