"""Inbound authorization request parameters for the wallet login handshake.

Parsed once from the login page query string and never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlparse

from dauth.login.models.errors import InvalidAuthRequest

DEFAULT_CODE_CHALLENGE_METHOD = "S256"


@dataclass(frozen=True)
class AuthRequestParams:
    """OAuth-style parameters the challenge is bound to.

    ``client_id``, ``redirect_uri`` and ``state`` stay ``None`` when the
    relying party did not send them. The PKCE fields fall back to an empty
    challenge and the S256 method.
    """

    client_id: str | None = None
    redirect_uri: str | None = None
    state: str | None = None
    code_challenge: str = ""
    code_challenge_method: str = DEFAULT_CODE_CHALLENGE_METHOD

    @classmethod
    def from_query(
        cls, query: str | Mapping[str, str | Sequence[str]]
    ) -> AuthRequestParams:
        """Build parameters from a query string, full URL or parameter mapping.

        Repeated keys resolve to their first value, as a browser's
        ``URLSearchParams.get`` would.
        """
        if isinstance(query, str):
            if query.startswith("/") or urlparse(query).scheme:
                raw = urlparse(query).query
            else:
                # Bare query values may carry an unencoded "?"
                raw = query[1:] if query.startswith("?") else query
            values: Mapping[str, Any] = parse_qs(raw, keep_blank_values=True)
        else:
            values = query

        def get_single_param(key: str) -> str | None:
            value = values.get(key)
            if value is None:
                return None
            if isinstance(value, str):
                return value
            return value[0] if value else None

        return cls(
            client_id=get_single_param("client_id"),
            redirect_uri=get_single_param("redirect_uri"),
            state=get_single_param("state"),
            code_challenge=get_single_param("code_challenge") or "",
            code_challenge_method=(
                get_single_param("code_challenge_method")
                or DEFAULT_CODE_CHALLENGE_METHOD
            ),
        )

    def require_client(self) -> None:
        """Check that the parameters identify a relying party.

        Raises:
            InvalidAuthRequest: If client_id or redirect_uri is missing
        """
        missing = [
            name
            for name, value in (
                ("client_id", self.client_id),
                ("redirect_uri", self.redirect_uri),
            )
            if not value
        ]
        if missing:
            raise InvalidAuthRequest(
                f"Missing required parameter(s): {', '.join(missing)}"
            )

    def to_challenge_payload(self) -> dict[str, str | None]:
        """All five parameters, verbatim, for the challenge request."""
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
        }
