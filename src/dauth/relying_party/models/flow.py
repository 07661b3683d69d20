"""Login request and callback models for the relying party."""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlencode


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE (RFC 7636) parameters for a single login."""

    code_verifier: str = field()
    code_challenge: str = field()
    code_challenge_method: str = field(default="S256")

    def __post_init__(self) -> None:
        if not (43 <= len(self.code_verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if not (43 <= len(self.code_challenge) <= 128):
            raise ValueError("code_challenge must be 43-128 characters")
        if self.code_challenge_method != "S256":
            raise ValueError("Only S256 code challenge method is supported")


@dataclass(frozen=True)
class PendingLogin:
    """Everything the relying party keeps between redirect and callback."""

    state: str
    pkce: PKCEParameters
    redirect_uri: str

    def __repr__(self) -> str:
        return f"PendingLogin(redirect_uri={self.redirect_uri!r})"


@dataclass(frozen=True)
class LoginRequest:
    """Parameters sent to the portal's wallet login page."""

    login_endpoint: str
    client_id: str
    redirect_uri: str
    state: str
    code_challenge: str
    code_challenge_method: str = "S256"

    def build_login_url(self) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
        }
        return f"{self.login_endpoint}?{urlencode(params)}"


@dataclass(frozen=True)
class CallbackResponse:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None
