"""User-driven events consumed by the signature coordinator."""

from __future__ import annotations

from dataclasses import dataclass

from dauth.login.models.wallet import Account


@dataclass(frozen=True)
class SelectAccount:
    account: Account | None


@dataclass(frozen=True)
class ConfirmSelection:
    pass


@dataclass(frozen=True)
class Retry:
    pass


HandshakeEvent = SelectAccount | ConfirmSelection | Retry
