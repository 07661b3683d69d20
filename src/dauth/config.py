"""Portal configuration.

Values come from ``DAUTH_``-prefixed environment variables or a ``.env``
file, falling back to the defaults below.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PortalSettings(BaseSettings):
    """Endpoints, timeouts and identifiers for the login portal."""

    model_config = SettingsConfigDict(
        env_prefix="DAUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Authorization server
    auth_server_url: str = "http://localhost:4000"
    challenge_path: str = "/api/wallet/challenge"
    verify_path: str = "/api/wallet/verify"
    accounts_path: str = "/api/wallet/accounts"
    token_path: str = "/oauth/token"
    profile_path: str = "/api/user/profile"

    # Relying party
    portal_url: str = "http://localhost:5173"
    client_id: str | None = None
    redirect_uri: str = "http://localhost:5173/callback"

    # Wallet
    wallet_agent_url: str = "http://127.0.0.1:7545"
    wallet_detection_timeout_ms: int = Field(default=5000, gt=0)
    wallet_poll_interval_ms: int = Field(default=100, gt=0)

    # HTTP
    http_timeout: float = Field(default=30.0, gt=0)

    # Error reporting
    error_log_url: str | None = None
    api_token_secret: str = ""
    app_name: str = "DAuth-admin-portal"

    @field_validator("auth_server_url", "portal_url", "wallet_agent_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("error_log_url")
    @classmethod
    def strip_optional_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    def auth_url(self, path: str) -> str:
        """Absolute URL for a path on the authorization server."""
        return f"{self.auth_server_url}{path}"
