"""Datastore collaborator contracts.

The gateway only reads from the datastore (wallet creation is the one
mutation). Implementations own persistence, key encryption and whatever
locking they need under concurrent access.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Sequence, runtime_checkable

from .permissions import Permission

if TYPE_CHECKING:
    from dexvault_chain.credentials import SigningCredential


@runtime_checkable
class User(Protocol):
    """A vault user with account-level permissions."""

    name: str

    def has_permission(self, action: Permission) -> bool:
        """Account-level check, not scoped to a wallet."""
        ...


@runtime_checkable
class Wallet(Protocol):
    """A stored wallet; signing material is only exposed through a credential."""

    name: str

    def get_address(self) -> str:
        ...

    def get_key_manager(self) -> "SigningCredential":
        """Materialize a request-scoped signing credential."""
        ...


@runtime_checkable
class Datastore(Protocol):
    def get_user(self, name: str) -> Optional[User]:
        ...

    def get_wallet(self, name: str) -> Optional[Wallet]:
        ...

    def create_wallet(self, name: str) -> Wallet:
        ...

    def is_permitted(self, user: str, wallet: str, action: Permission) -> bool:
        ...

    @property
    def wallets(self) -> Sequence[Wallet]:
        """Wallets in enumeration order."""
        ...
