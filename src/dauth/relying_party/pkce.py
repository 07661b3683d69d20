"""PKCE parameter generation (RFC 7636) for relying-party logins."""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from dauth.relying_party.models.errors import PKCEError
from dauth.relying_party.models.flow import PKCEParameters

_VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"


def code_challenge_for(code_verifier: str) -> str:
    """BASE64URL-ENCODE(SHA256(ASCII(code_verifier))) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class PKCEManager:
    """Generates S256 PKCE parameters for each login."""

    def __init__(self, verifier_length: int = 128):
        if not (43 <= verifier_length <= 128):
            raise ValueError("verifier_length must be between 43 and 128")
        self.verifier_length = verifier_length

    def generate_parameters(self) -> PKCEParameters:
        """Create a fresh code verifier and its S256 challenge.

        Raises:
            PKCEError: If parameter generation fails
        """
        try:
            code_verifier = "".join(
                secrets.choice(_VERIFIER_ALPHABET)
                for _ in range(self.verifier_length)
            )
            return PKCEParameters(
                code_verifier=code_verifier,
                code_challenge=code_challenge_for(code_verifier),
                code_challenge_method="S256",
            )
        except Exception as e:
            raise PKCEError(f"Failed to generate PKCE parameters: {e}") from e
