"""Challenge and verification wire models.

Request models are immutable dataclasses that render their own JSON body;
responses are pydantic models validated straight from the server JSON.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class ChallengeResponse(BaseModel):
    """Single-use challenge issued by the authorization server."""

    model_config = ConfigDict(extra="ignore")

    challenge: str


@dataclass(frozen=True)
class VerificationRequest:
    """Signed challenge plus the identifying material sent for verification."""

    wallet_address: str
    public_key: str | None
    signature: str
    client_id: str | None
    redirect_uri: str | None
    state: str | None
    email: str | None

    def to_json(self) -> dict[str, str | None]:
        """Render the body with the field names the server expects."""
        return {
            "walletAddress": self.wallet_address,
            "publicKey": self.public_key,
            "signature": self.signature,
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
            "email": self.email,
        }

    def __repr__(self) -> str:
        # Keep the signature out of logs and tracebacks.
        return (
            f"VerificationRequest(wallet_address={self.wallet_address!r}, "
            f"client_id={self.client_id!r}, email={self.email!r})"
        )


class VerificationResponse(BaseModel):
    """Authorization code returned on successful verification."""

    model_config = ConfigDict(extra="ignore")

    code: str
