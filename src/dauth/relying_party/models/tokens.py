"""Token exchange models."""

from __future__ import annotations

import time
from dataclasses import dataclass

from pydantic import BaseModel


@dataclass
class TokenState:
    """Tokens obtained from a completed login.

    Mutable so a credential holder can clear it on logout.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    token_type: str = "Bearer"
    expires_at: float | None = None  # Unix timestamp
    scope: str | None = None

    def is_valid(self, buffer_seconds: float = 30.0) -> bool:
        """Check if the access token is present and not about to expire."""
        if not self.access_token:
            return False

        if self.expires_at is None:
            return True

        return time.time() < (self.expires_at - buffer_seconds)

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.id_token = None
        self.expires_at = None
        self.scope = None

    def __repr__(self) -> str:
        return (
            f"TokenState(token_type={self.token_type!r}, "
            f"expires_at={self.expires_at!r}, valid={self.is_valid()})"
        )


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange parameters (RFC 6749 Section 4.1.3)."""

    token_endpoint: str
    code: str
    redirect_uri: str
    client_id: str
    code_verifier: str
    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        return {
            "grant_type": self.grant_type,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "code_verifier": self.code_verifier,
        }


class TokenResponse(BaseModel):
    """Token endpoint response, success (5.1) or error (5.2)."""

    access_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    scope: str | None = None

    error: str | None = None
    error_description: str | None = None

    def is_success(self) -> bool:
        return self.error is None and self.access_token is not None

    def to_token_state(self) -> TokenState:
        """Convert a successful response to a TokenState.

        Raises:
            ValueError: If the response is an error response
        """
        if not self.is_success():
            raise ValueError("Cannot convert error response to TokenState")

        return TokenState(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            id_token=self.id_token,
            token_type=self.token_type,
            expires_at=(
                time.time() + self.expires_in if self.expires_in is not None else None
            ),
            scope=self.scope,
        )
