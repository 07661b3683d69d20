"""State parameter helpers for CSRF protection."""

from __future__ import annotations

import secrets
import string

from dauth.relying_party.models.errors import StateValidationError


def generate_state() -> str:
    """Generate a 32-character URL-safe random state parameter."""
    alphabet = string.ascii_letters + string.digits + "-._~"
    return "".join(secrets.choice(alphabet) for _ in range(32))


def validate_state(expected: str, actual: str | None) -> None:
    """Check the callback state against the one sent with the login.

    Raises:
        StateValidationError: If state is missing or does not match
    """
    if actual is None:
        raise StateValidationError("Callback missing required state parameter")
    if not secrets.compare_digest(expected.encode(), actual.encode()):
        raise StateValidationError("State parameter mismatch - possible CSRF attack")
