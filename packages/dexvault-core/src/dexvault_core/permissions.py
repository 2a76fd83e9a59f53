"""Permissions understood by the DexVault permission policy.

Two kinds of checks use the same enum:
  - **Account-level**: held by the user itself (CreateWallet, Read for listing)
  - **Wallet-scoped**: granted per (user, wallet), checked before every signing
    operation
"""
from __future__ import annotations

from enum import Enum


class Permission(str, Enum):
    """Granular permissions in DexVault."""

    READ = "Read"
    CREATE_WALLET = "CreateWallet"

    # Exchange
    CREATE_ORDER = "CreateOrder"
    CANCEL_ORDER = "CancelOrder"
    LIST_PAIR = "ListPair"

    # Token lifecycle
    ISSUE_TOKEN = "IssueToken"
    MINT_TOKEN = "MintToken"
    TOKEN_BURN = "TokenBurn"
    FREEZE_TOKEN = "FreezeToken"
    UNFREEZE_TOKEN = "UnfreezeToken"
    SEND_TOKEN = "SendToken"

    # Governance
    SUBMIT_PROPOSAL = "SubmitProposal"
    DEPOSIT = "Deposit"
    VOTE_PROPOSAL = "VoteProposal"

    @classmethod
    def parse(cls, value: str) -> "Permission":
        """Accept either the wire value ("CreateOrder") or the member name."""
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown permission: {value!r}") from None


# Grant key that applies a permission to every wallet in the vault
ANY_WALLET = "*"
