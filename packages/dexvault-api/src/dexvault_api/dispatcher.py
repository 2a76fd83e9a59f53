"""
Command dispatcher for signing actions.

Every signing action runs the same lifecycle:

    Received -> Authenticated -> Authorized -> Signed -> (Broadcast | Returned) -> Done

1. decode the action payload and the signed BasicMessage from the same claim
2. check the permission against the wallet named in the signed BasicMessage
3. resolve the wallet's signing credential
4. build and sign the transaction
5. return the hex transaction, or broadcast it when a host is given

Action kinds differ only in permission, payload type and builder, which live
in ACTION_TABLE. Any failure ends the request with InvalidRequestError naming
the state it failed in.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Type, Union

from dexvault_chain import builders
from dexvault_chain.broadcast import BatchResponse, BroadcastAggregator
from dexvault_chain.builders import TransactionBuilder
from dexvault_chain.credentials import SigningCredential
from dexvault_core.datastore import Datastore
from dexvault_core.exceptions import (
    DexVaultException,
    InvalidRequestError,
    NotPermittedError,
)
from dexvault_core.messages import (
    ActionPayload,
    BasicMessage,
    CancelOrder,
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
from dexvault_core.permissions import Permission
from dexvault_core.policy import is_permitted
from dexvault_wallet.resolver import resolve_credential

from .authn import AuthenticatedRequest
from .claims import DEFAULT_CLAIM, extract_payload, extract_signed_subclaim
from .responses import SignedTransactionResponse
from .routers.metrics import record_broadcast, record_dispatch

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    CREATE_ORDER = "create_order"
    CANCEL_ORDER = "cancel_order"
    TOKEN_BURN = "token_burn"
    DEPOSIT = "deposit"
    FREEZE_TOKEN = "freeze_token"
    ISSUE_TOKEN = "issue_token"
    LIST_PAIR = "list_pair"
    MINT_TOKEN = "mint_token"
    SEND_TOKEN = "send_token"
    SUBMIT_PROPOSAL = "submit_proposal"
    UNFREEZE_TOKEN = "unfreeze_token"
    VOTE_PROPOSAL = "vote_proposal"


class DispatchState(str, Enum):
    RECEIVED = "Received"
    AUTHENTICATED = "Authenticated"
    AUTHORIZED = "Authorized"
    SIGNED = "Signed"
    BROADCAST = "Broadcast"
    RETURNED = "Returned"
    DONE = "Done"
    FAILED = "Failed"


@dataclass(frozen=True)
class ActionSpec:
    kind: ActionKind
    permission: Permission
    payload_type: Type[ActionPayload]
    builder: TransactionBuilder
    path: str
    summary: str


ACTION_TABLE: Mapping[ActionKind, ActionSpec] = MappingProxyType({
    spec.kind: spec
    for spec in (
        ActionSpec(ActionKind.CREATE_ORDER, Permission.CREATE_ORDER, CreateOrder,
                   builders.build_create_order, "/order/create", "Place an order"),
        ActionSpec(ActionKind.CANCEL_ORDER, Permission.CANCEL_ORDER, CancelOrder,
                   builders.build_cancel_order, "/order/cancel", "Cancel an order"),
        ActionSpec(ActionKind.TOKEN_BURN, Permission.TOKEN_BURN, TokenBurn,
                   builders.build_token_burn, "/token/burn", "Burn tokens"),
        ActionSpec(ActionKind.DEPOSIT, Permission.DEPOSIT, DepositProposal,
                   builders.build_deposit, "/proposal/deposit", "Deposit on a proposal"),
        ActionSpec(ActionKind.FREEZE_TOKEN, Permission.FREEZE_TOKEN, FreezeToken,
                   builders.build_freeze_token, "/token/freeze", "Freeze tokens"),
        ActionSpec(ActionKind.ISSUE_TOKEN, Permission.ISSUE_TOKEN, IssueToken,
                   builders.build_issue_token, "/token/issue", "Issue a token"),
        ActionSpec(ActionKind.LIST_PAIR, Permission.LIST_PAIR, ListPair,
                   builders.build_list_pair, "/pair/list", "List a trading pair"),
        ActionSpec(ActionKind.MINT_TOKEN, Permission.MINT_TOKEN, MintToken,
                   builders.build_mint_token, "/token/mint", "Mint tokens"),
        ActionSpec(ActionKind.SEND_TOKEN, Permission.SEND_TOKEN, SendToken,
                   builders.build_send_token, "/token/send", "Send tokens"),
        ActionSpec(ActionKind.SUBMIT_PROPOSAL, Permission.SUBMIT_PROPOSAL, SubmitProposal,
                   builders.build_submit_proposal, "/proposal/submit", "Submit a proposal"),
        ActionSpec(ActionKind.UNFREEZE_TOKEN, Permission.UNFREEZE_TOKEN, UnfreezeToken,
                   builders.build_unfreeze_token, "/token/unfreeze", "Unfreeze tokens"),
        ActionSpec(ActionKind.VOTE_PROPOSAL, Permission.VOTE_PROPOSAL, VoteProposal,
                   builders.build_vote_proposal, "/proposal/vote", "Vote on a proposal"),
    )
})


@dataclass
class AuthorizedRequest:
    """Output of lifecycle steps 1 to 3."""

    user: str
    wallet: str
    payload: Any
    credential: SigningCredential


DispatchResult = Union[SignedTransactionResponse, BatchResponse]


class CommandDispatcher:
    """Runs the shared lifecycle for every action kind in the table."""

    def __init__(
        self,
        datastore: Datastore,
        aggregator: BroadcastAggregator,
        table: Mapping[ActionKind, ActionSpec] = ACTION_TABLE,
        payload_claim: str = DEFAULT_CLAIM,
    ) -> None:
        self._datastore = datastore
        self._aggregator = aggregator
        self._table = table
        self._payload_claim = payload_claim

    @property
    def table(self) -> Mapping[ActionKind, ActionSpec]:
        return self._table

    def authorize(
        self,
        request: AuthenticatedRequest,
        permission: Permission,
        payload_type: Type[Any],
    ) -> AuthorizedRequest:
        """
        Decode, check permission and resolve the credential.

        The caller owns the returned credential and must release it; prefer
        ``authorized()`` which does so.
        """
        state = DispatchState.RECEIVED
        try:
            payload = extract_payload(request, payload_type, self._payload_claim)
            signed = extract_signed_subclaim(request, BasicMessage, self._payload_claim)
            state = self._advance(state, DispatchState.AUTHENTICATED, request.user, signed.wallet)

            if not is_permitted(self._datastore, request.user, signed.wallet, permission):
                raise NotPermittedError(
                    details={"permission": permission.value, "wallet": signed.wallet},
                )
            state = self._advance(state, DispatchState.AUTHORIZED, request.user, signed.wallet)

            credential = resolve_credential(self._datastore, signed.wallet)
        except DexVaultException as e:
            raise self._fail(state, e) from e

        return AuthorizedRequest(
            user=request.user,
            wallet=signed.wallet,
            payload=payload,
            credential=credential,
        )

    @contextmanager
    def authorized(
        self,
        request: AuthenticatedRequest,
        permission: Permission,
        payload_type: Type[Any],
    ) -> Iterator[AuthorizedRequest]:
        """``authorize()`` with the credential released on exit."""
        authz = self.authorize(request, permission, payload_type)
        try:
            yield authz
        finally:
            authz.credential.release()

    async def dispatch(self, kind: ActionKind, request: AuthenticatedRequest) -> DispatchResult:
        spec = self._table[kind]
        try:
            with self.authorized(request, spec.permission, spec.payload_type) as authz:
                result = await self._sign_and_route(spec, authz)
        except InvalidRequestError:
            record_dispatch(kind.value, "failed")
            raise

        outcome = "broadcast" if isinstance(result, BatchResponse) else "returned"
        record_dispatch(kind.value, outcome)
        return result

    async def _sign_and_route(self, spec: ActionSpec, authz: AuthorizedRequest) -> DispatchResult:
        state = DispatchState.AUTHORIZED
        try:
            signed_tx = spec.builder(authz.credential, authz.payload)
        except DexVaultException as e:
            raise self._fail(state, e) from e
        except (ValueError, TypeError) as e:
            raise self._fail(state, e) from e
        state = self._advance(state, DispatchState.SIGNED, authz.user, authz.wallet)

        payload: ActionPayload = authz.payload
        if not payload.broadcast_host:
            state = self._advance(state, DispatchState.RETURNED, authz.user, authz.wallet)
            self._advance(state, DispatchState.DONE, authz.user, authz.wallet)
            return SignedTransactionResponse(response=signed_tx)

        start = time.perf_counter()
        try:
            result = await self._aggregator.submit(
                authz.credential,
                payload.broadcast_host,
                payload.broadcast_network,
                signed_tx,
            )
        except DexVaultException as e:
            raise self._fail(state, e) from e

        failed = sum(1 for r in result.results if not r.ok)
        record_broadcast(time.perf_counter() - start, len(result.results) - failed, failed)
        state = self._advance(state, DispatchState.BROADCAST, authz.user, authz.wallet)
        self._advance(state, DispatchState.DONE, authz.user, authz.wallet)
        return result

    @staticmethod
    def _advance(
        current: DispatchState,
        target: DispatchState,
        user: str,
        wallet: Optional[str],
    ) -> DispatchState:
        logger.debug(
            "Dispatch %s -> %s",
            current.value,
            target.value,
            extra={"user": user, "wallet": wallet},
        )
        return target

    @staticmethod
    def _fail(state: DispatchState, exc: BaseException) -> InvalidRequestError:
        logger.info(
            "Dispatch failed in state %s",
            state.value,
            extra={"error_type": type(exc).__name__, "next_state": DispatchState.FAILED.value},
        )
        return InvalidRequestError.wrap(exc, state=state.value)


__all__ = [
    "ActionKind",
    "DispatchState",
    "ActionSpec",
    "ACTION_TABLE",
    "AuthorizedRequest",
    "CommandDispatcher",
    "DispatchResult",
]
