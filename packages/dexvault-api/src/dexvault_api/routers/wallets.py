"""Wallet API endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from dexvault_core.datastore import Datastore
from dexvault_core.exceptions import (
    DexVaultException,
    InvalidRequestError,
    PermissionDeniedError,
    PreconditionFailedError,
)
from dexvault_core.messages import BasicMessage, WalletQuery
from dexvault_core.permissions import Permission

from ..authn import AuthenticatedRequest, require_authenticated_request
from ..claims import extract_signed_subclaim
from ..dispatcher import CommandDispatcher
from ..responses import SignedTransactionResponse, WalletResponse, WalletsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["wallets"])


# Dependency
class WalletDependencies:
    def __init__(self, datastore: Datastore, dispatcher: CommandDispatcher, payload_claim: str = "payload"):
        self.datastore = datastore
        self.dispatcher = dispatcher
        self.payload_claim = payload_claim


def get_deps() -> WalletDependencies:
    raise NotImplementedError("Dependency override required")


def _require_account_permission(
    datastore: Datastore,
    auth: AuthenticatedRequest,
    permission: Permission,
) -> None:
    """Account-level capability check: 400 without a user, 403 when denied."""
    if not auth.user:
        raise InvalidRequestError.wrap(PreconditionFailedError("No user could be found."))
    user = datastore.get_user(auth.user)
    if user is None or not user.has_permission(permission):
        logger.info(
            "Account permission denied",
            extra={"user": auth.user, "action": permission.value},
        )
        raise PermissionDeniedError()


# Endpoints
@router.post("/wallets")
async def create_wallet(
    auth: AuthenticatedRequest = Depends(require_authenticated_request),
    deps: WalletDependencies = Depends(get_deps),
):
    """Create a wallet named by the signed claim; responds with its address."""
    try:
        message = extract_signed_subclaim(auth, BasicMessage, deps.payload_claim)
    except DexVaultException as e:
        raise InvalidRequestError.wrap(e) from e

    _require_account_permission(deps.datastore, auth, Permission.CREATE_WALLET)
    try:
        wallet = deps.datastore.create_wallet(message.wallet)
        address = wallet.get_address()
    except DexVaultException as e:
        raise InvalidRequestError.wrap(e) from e

    logger.info("Wallet created", extra={"user": auth.user, "wallet": message.wallet})
    return SignedTransactionResponse(response=address).to_body()


@router.get("/wallets")
async def list_wallets(
    auth: AuthenticatedRequest = Depends(require_authenticated_request),
    deps: WalletDependencies = Depends(get_deps),
):
    """List every wallet in enumeration order."""
    _require_account_permission(deps.datastore, auth, Permission.READ)
    try:
        wallets = [
            WalletResponse(name=w.name, address=w.get_address())
            for w in deps.datastore.wallets
        ]
    except DexVaultException as e:
        raise InvalidRequestError.wrap(e) from e
    return WalletsResponse(wallets=wallets).to_body()


@router.post("/wallet")
async def get_wallet(
    auth: AuthenticatedRequest = Depends(require_authenticated_request),
    deps: WalletDependencies = Depends(get_deps),
):
    """Name and address of the wallet in the signed claim."""
    with deps.dispatcher.authorized(auth, Permission.READ, WalletQuery) as authz:
        return WalletResponse(name=authz.wallet, address=authz.credential.address).to_body()


@router.post("/wallet/address")
async def get_address(
    auth: AuthenticatedRequest = Depends(require_authenticated_request),
    deps: WalletDependencies = Depends(get_deps),
):
    """Address of the wallet in the signed claim."""
    with deps.dispatcher.authorized(auth, Permission.READ, WalletQuery) as authz:
        return SignedTransactionResponse(response=authz.credential.address).to_body()
