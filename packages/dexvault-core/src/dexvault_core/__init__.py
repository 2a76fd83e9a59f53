"""Core domain primitives shared across DexVault services."""

from .config import DexVaultSettings, load_settings
from .datastore import Datastore, User, Wallet
from .exceptions import (
    DexVaultException,
    InvalidRequestError,
    PermissionDeniedError,
)
from .messages import ActionPayload, BasicMessage, WalletQuery
from .permissions import ANY_WALLET, Permission
from .policy import is_permitted

__all__ = [
    "DexVaultSettings",
    "load_settings",
    "Datastore",
    "User",
    "Wallet",
    "DexVaultException",
    "InvalidRequestError",
    "PermissionDeniedError",
    "ActionPayload",
    "BasicMessage",
    "WalletQuery",
    "ANY_WALLET",
    "Permission",
    "is_permitted",
]
