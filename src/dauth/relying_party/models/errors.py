"""Exception hierarchy for the relying-party side of DAuth login."""

from __future__ import annotations


class OAuth2Error(Exception):
    """Base exception for relying-party OAuth errors."""

    pass


class PKCEError(OAuth2Error):
    """Raised when PKCE parameter generation fails."""

    pass


class AuthorizationError(OAuth2Error):
    """Raised when the portal reports that authorization failed."""

    pass


class AuthorizationCallbackError(OAuth2Error):
    """Raised when the callback URL is malformed or incomplete."""

    pass


class StateValidationError(AuthorizationCallbackError):
    """Raised when the callback state is missing or does not match.

    Either the authorization server dropped the state or the callback did
    not originate from a login this client started.
    """

    pass


class TokenError(OAuth2Error):
    """Raised when exchanging an authorization code for tokens fails."""

    pass
