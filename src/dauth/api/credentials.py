"""Scoped credential holder for authenticated API calls.

Tokens live in a holder that is passed explicitly to whatever needs them
and cleared when its scope ends. There is no module-level token storage.
"""

from __future__ import annotations

import logging
from collections.abc import Generator

import httpx

from dauth.relying_party.models.tokens import TokenState

logger = logging.getLogger(__name__)


class CredentialHolder:
    """Holds the tokens from one completed login.

    Usable as a context manager; leaving the ``with`` block clears the
    tokens.
    """

    def __init__(self, tokens: TokenState | None = None):
        self._tokens = tokens or TokenState()

    @property
    def tokens(self) -> TokenState:
        return self._tokens

    def set_tokens(self, tokens: TokenState) -> None:
        self._tokens = tokens

    def bearer(self) -> str | None:
        """Current access token if it is still valid."""
        if not self._tokens.is_valid():
            return None
        return self._tokens.access_token

    def clear(self) -> None:
        self._tokens.clear()

    def __enter__(self) -> CredentialHolder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clear()


class BearerAuth(httpx.Auth):
    """httpx auth flow adding the holder's access token to each request."""

    def __init__(self, credentials: CredentialHolder):
        self.credentials = credentials

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        token = self.credentials.bearer()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request
