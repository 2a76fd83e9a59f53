"""Signed claim payloads.

Every request carries one JSON document inside the signed claim set. It is
decoded twice: once into a BasicMessage, whose ``Wallet`` is the key for the
permission check, and once into the action-specific payload below. Keys are
PascalCase on the wire; snake_case field names are accepted as well and
unknown keys are ignored, so the same document validates into both views.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal


class ClaimModel(BaseModel):
    """Base for all models decoded from the signed claim."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )

    def to_claim(self) -> str:
        """Encode back into the JSON string embedded in a token."""
        return self.model_dump_json(by_alias=True)


class BasicMessage(ClaimModel):
    """The minimal signed sub-claim naming the wallet an action targets."""

    wallet: str = Field(min_length=1)


class Coin(ClaimModel):
    denom: str = Field(min_length=1)
    amount: int = Field(gt=0)


class ActionPayload(ClaimModel):
    """Fields shared by every signing action."""

    # Empty host means sign only; the encoded transaction is returned as-is.
    broadcast_host: str = ""
    broadcast_network: int = Field(default=0, ge=0)


class WalletQuery(ClaimModel):
    """Payload of the read actions; ``Name`` is informational only."""

    name: Optional[str] = None


# =============================================================================
# Exchange
# =============================================================================

class CreateOrder(ActionPayload):
    symbol: str = Field(min_length=1)
    side: Literal[1, 2]
    price: int = Field(gt=0)
    quantity: int = Field(gt=0)
    time_in_force: Literal[1, 3] = 1


class CancelOrder(ActionPayload):
    symbol: str = Field(min_length=1)
    order_id: str = Field(min_length=1)


class ListPair(ActionPayload):
    proposal_id: int = Field(ge=0)
    base_asset_symbol: str = Field(min_length=1)
    quote_asset_symbol: str = Field(min_length=1)
    init_price: int = Field(gt=0)


# =============================================================================
# Token lifecycle
# =============================================================================

class IssueToken(ActionPayload):
    name: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    supply: int = Field(gt=0)
    mintable: bool = False


class MintToken(ActionPayload):
    symbol: str = Field(min_length=1)
    amount: int = Field(gt=0)


class TokenBurn(ActionPayload):
    symbol: str = Field(min_length=1)
    amount: int = Field(gt=0)


class FreezeToken(ActionPayload):
    symbol: str = Field(min_length=1)
    amount: int = Field(gt=0)


class UnfreezeToken(ActionPayload):
    symbol: str = Field(min_length=1)
    amount: int = Field(gt=0)


class Transfer(ClaimModel):
    to_address: str = Field(min_length=1)
    coins: List[Coin] = Field(min_length=1)


class SendToken(ActionPayload):
    transfers: List[Transfer] = Field(min_length=1)


# =============================================================================
# Governance
# =============================================================================

class SubmitProposal(ActionPayload):
    title: str = Field(min_length=1)
    description: str = ""
    proposal_type: int = Field(ge=0)
    initial_deposit: List[Coin] = Field(default_factory=list)
    voting_period: int = Field(gt=0)


class DepositProposal(ActionPayload):
    proposal_id: int = Field(ge=0)
    amount: List[Coin] = Field(min_length=1)


class VoteProposal(ActionPayload):
    proposal_id: int = Field(ge=0)
    # 1 yes, 2 abstain, 3 no, 4 no with veto
    option: Literal[1, 2, 3, 4]


__all__ = [
    "ClaimModel",
    "BasicMessage",
    "Coin",
    "ActionPayload",
    "WalletQuery",
    "CreateOrder",
    "CancelOrder",
    "ListPair",
    "IssueToken",
    "MintToken",
    "TokenBurn",
    "FreezeToken",
    "UnfreezeToken",
    "Transfer",
    "SendToken",
    "SubmitProposal",
    "DepositProposal",
    "VoteProposal",
]
