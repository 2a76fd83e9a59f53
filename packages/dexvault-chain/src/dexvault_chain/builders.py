"""Signed transaction builders, one per signing action.

Each builder turns an action payload into a list of chain messages, wraps them
in an envelope bound to the target network and the signer's address, signs the
canonical JSON encoding of that envelope and returns the hex encoding of the
signed transaction. Builders hold no state.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

from dexvault_core.exceptions import TransactionBuildError
from dexvault_core.messages import (
    ActionPayload,
    CancelOrder,
    Coin,
    CreateOrder,
    DepositProposal,
    FreezeToken,
    IssueToken,
    ListPair,
    MintToken,
    SendToken,
    SubmitProposal,
    TokenBurn,
    UnfreezeToken,
    VoteProposal,
)

from .credentials import CredentialReleasedError, SigningCredential

# Network id (BroadcastNetwork) -> chain id embedded in every envelope
CHAIN_NETWORKS: Dict[int, str] = {
    0: "Binance-Chain-Nile",
    1: "Binance-Chain-Tigris",
}

TransactionBuilder = Callable[[SigningCredential, Any], str]


def canonical_json(value: Any) -> bytes:
    """Deterministic JSON: sorted keys, no insignificant whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":")).encode("utf-8")


def chain_id_for(network: int) -> str:
    try:
        return CHAIN_NETWORKS[network]
    except KeyError:
        raise TransactionBuildError(
            f"Unknown network {network}",
            details={"network": network},
        ) from None


def _coins(coins: List[Coin]) -> List[Dict[str, Any]]:
    return [{"denom": c.denom, "amount": c.amount} for c in coins]


def sign_messages(
    credential: SigningCredential,
    payload: ActionPayload,
    msgs: List[Dict[str, Any]],
) -> str:
    """Wrap ``msgs`` in an envelope, sign it, and return the hex-encoded transaction."""
    envelope = {
        "account": credential.address,
        "chain_id": chain_id_for(payload.broadcast_network),
        "msgs": msgs,
    }
    try:
        signature = credential.sign(canonical_json(envelope))
    except CredentialReleasedError as exc:
        raise TransactionBuildError(str(exc)) from exc

    signed_tx = {
        "msg": envelope,
        "signatures": [{"address": credential.address, "signature": signature}],
    }
    return canonical_json(signed_tx).hex()


def _msg(msg_type: str, value: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": msg_type, "value": value}


# =============================================================================
# Exchange
# =============================================================================

def build_create_order(credential: SigningCredential, payload: CreateOrder) -> str:
    return sign_messages(credential, payload, [
        _msg("dex/NewOrder", {
            "sender": credential.address,
            "symbol": payload.symbol,
            "side": payload.side,
            "price": payload.price,
            "quantity": payload.quantity,
            "timeinforce": payload.time_in_force,
        }),
    ])


def build_cancel_order(credential: SigningCredential, payload: CancelOrder) -> str:
    return sign_messages(credential, payload, [
        _msg("dex/CancelOrder", {
            "sender": credential.address,
            "symbol": payload.symbol,
            "refid": payload.order_id,
        }),
    ])


def build_list_pair(credential: SigningCredential, payload: ListPair) -> str:
    return sign_messages(credential, payload, [
        _msg("dex/ListMsg", {
            "from": credential.address,
            "proposal_id": payload.proposal_id,
            "base_asset_symbol": payload.base_asset_symbol,
            "quote_asset_symbol": payload.quote_asset_symbol,
            "init_price": payload.init_price,
        }),
    ])


# =============================================================================
# Token lifecycle
# =============================================================================

def build_issue_token(credential: SigningCredential, payload: IssueToken) -> str:
    return sign_messages(credential, payload, [
        _msg("tokens/IssueMsg", {
            "from": credential.address,
            "name": payload.name,
            "symbol": payload.symbol,
            "total_supply": payload.supply,
            "mintable": payload.mintable,
        }),
    ])


def build_mint_token(credential: SigningCredential, payload: MintToken) -> str:
    return sign_messages(credential, payload, [
        _msg("tokens/MintMsg", {
            "from": credential.address,
            "symbol": payload.symbol,
            "amount": payload.amount,
        }),
    ])


def build_token_burn(credential: SigningCredential, payload: TokenBurn) -> str:
    return sign_messages(credential, payload, [
        _msg("tokens/BurnMsg", {
            "from": credential.address,
            "symbol": payload.symbol,
            "amount": payload.amount,
        }),
    ])


def build_freeze_token(credential: SigningCredential, payload: FreezeToken) -> str:
    return sign_messages(credential, payload, [
        _msg("tokens/FreezeMsg", {
            "from": credential.address,
            "symbol": payload.symbol,
            "amount": payload.amount,
        }),
    ])


def build_unfreeze_token(credential: SigningCredential, payload: UnfreezeToken) -> str:
    return sign_messages(credential, payload, [
        _msg("tokens/UnfreezeMsg", {
            "from": credential.address,
            "symbol": payload.symbol,
            "amount": payload.amount,
        }),
    ])


def build_send_token(credential: SigningCredential, payload: SendToken) -> str:
    # Inputs mirror outputs: the signer pays for every transfer.
    totals: Dict[str, int] = {}
    for transfer in payload.transfers:
        for coin in transfer.coins:
            totals[coin.denom] = totals.get(coin.denom, 0) + coin.amount

    return sign_messages(credential, payload, [
        _msg("cosmos-sdk/Send", {
            "inputs": [{
                "address": credential.address,
                "coins": [{"denom": d, "amount": a} for d, a in sorted(totals.items())],
            }],
            "outputs": [
                {"address": t.to_address, "coins": _coins(t.coins)}
                for t in payload.transfers
            ],
        }),
    ])


# =============================================================================
# Governance
# =============================================================================

def build_submit_proposal(credential: SigningCredential, payload: SubmitProposal) -> str:
    return sign_messages(credential, payload, [
        _msg("cosmos-sdk/MsgSubmitProposal", {
            "proposer": credential.address,
            "title": payload.title,
            "description": payload.description,
            "proposal_type": payload.proposal_type,
            "initial_deposit": _coins(payload.initial_deposit),
            "voting_period": payload.voting_period,
        }),
    ])


def build_deposit(credential: SigningCredential, payload: DepositProposal) -> str:
    return sign_messages(credential, payload, [
        _msg("cosmos-sdk/MsgDeposit", {
            "depositor": credential.address,
            "proposal_id": payload.proposal_id,
            "amount": _coins(payload.amount),
        }),
    ])


def build_vote_proposal(credential: SigningCredential, payload: VoteProposal) -> str:
    return sign_messages(credential, payload, [
        _msg("cosmos-sdk/MsgVote", {
            "voter": credential.address,
            "proposal_id": payload.proposal_id,
            "option": payload.option,
        }),
    ])


def decode_transaction(signed_tx: str) -> Dict[str, Any]:
    """Inverse of the hex encoding, for inspection and tests."""
    return json.loads(bytes.fromhex(signed_tx).decode("utf-8"))


__all__ = [
    "CHAIN_NETWORKS",
    "TransactionBuilder",
    "canonical_json",
    "chain_id_for",
    "sign_messages",
    "decode_transaction",
    "build_create_order",
    "build_cancel_order",
    "build_list_pair",
    "build_issue_token",
    "build_mint_token",
    "build_token_burn",
    "build_freeze_token",
    "build_unfreeze_token",
    "build_send_token",
    "build_submit_proposal",
    "build_deposit",
    "build_vote_proposal",
]
