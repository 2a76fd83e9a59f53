"""Success response bodies. Keys are PascalCase on the wire."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from dexvault_chain.broadcast import BatchResponse, CommitResult


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True)


class SignedTransactionResponse(ApiModel):
    """Opaque string result: a signed transaction (hex) or an address."""

    response: str


class WalletResponse(ApiModel):
    name: str
    address: str


class WalletsResponse(ApiModel):
    wallets: List[WalletResponse] = Field(default_factory=list)


__all__ = [
    "ApiModel",
    "SignedTransactionResponse",
    "WalletResponse",
    "WalletsResponse",
    "BatchResponse",
    "CommitResult",
]
