"""Exception hierarchy for the wallet login handshake.

Every failure the handshake can hit maps to one exception type here, and
each type carries the ``FailureReason`` the coordinator surfaces for it.
Messages never include challenge or signature values.
"""

from __future__ import annotations

from dauth.login.models.state import FailureReason


class LoginError(Exception):
    """Base exception for all wallet login errors."""

    reason: FailureReason | None = None


class InvalidAuthRequest(LoginError):
    """Raised when inbound request parameters are missing required values."""

    pass


class WalletNotDetected(LoginError):
    """Raised when no wallet provider appears before the detection timeout."""

    reason = FailureReason.WALLET_NOT_DETECTED


class WalletUnreadable(LoginError):
    """Raised when the wallet reports no usable account handle."""

    reason = FailureReason.WALLET_UNREADABLE


class WalletUnavailable(LoginError):
    """Raised when the wallet provider disappears mid-flow."""

    reason = FailureReason.SIGNATURE_REJECTED


class NoAccounts(LoginError):
    """Raised when the authorization server knows no accounts for an address."""

    reason = FailureReason.NO_ACCOUNTS


class AccountLookupFailed(LoginError):
    """Raised when account enumeration fails at the transport or server."""

    reason = FailureReason.ACCOUNT_LOOKUP_FAILED


class ChallengeRequestFailed(LoginError):
    """Raised when the authorization server does not issue a challenge."""

    reason = FailureReason.CHALLENGE_REQUEST_FAILED


class SignatureRejected(LoginError):
    """Raised when the user declines the signing prompt."""

    reason = FailureReason.SIGNATURE_REJECTED


class VerificationFailed(LoginError):
    """Raised when the signed challenge is not accepted.

    The message only ever names the HTTP status or error class, so it is
    safe to show to the user.
    """

    reason = FailureReason.VERIFICATION_FAILED
