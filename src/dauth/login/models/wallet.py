"""Wallet connection and account models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class WalletHandle(BaseModel):
    """Active wallet connection as reported by the provider.

    Both fields may be missing when the extension is installed but no
    account is selected in it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    account_address: str | None = Field(default=None, alias="accountAddress")
    public_key: str | None = Field(default=None, alias="publicKey")

    @property
    def is_readable(self) -> bool:
        return bool(self.account_address)


class Account(BaseModel):
    """One identity controlled by a wallet address."""

    model_config = ConfigDict(frozen=True)

    id: int | str
    name: str
    email: str
