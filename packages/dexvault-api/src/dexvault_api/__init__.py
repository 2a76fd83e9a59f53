"""DexVault HTTP gateway."""

from .authn import AuthenticatedRequest, TokenVerifier
from .dispatcher import ACTION_TABLE, ActionKind, CommandDispatcher, DispatchState
from .main import create_app

__all__ = [
    "AuthenticatedRequest",
    "TokenVerifier",
    "ACTION_TABLE",
    "ActionKind",
    "CommandDispatcher",
    "DispatchState",
    "create_app",
]
