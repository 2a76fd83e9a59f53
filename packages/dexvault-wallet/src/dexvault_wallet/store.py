"""
In-memory vault datastore.

Holds users, their account-level permissions and per-wallet grants, and
wallets whose private keys are kept encrypted with Fernet under the vault
key. Keys are decrypted only inside ``get_key_manager()``, which hands out a
request-scoped SigningCredential.

Wallets keep insertion order, which is the enumeration order exposed by
``wallets``.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set

from cryptography.fernet import Fernet

from dexvault_chain.credentials import SigningCredential, generate_private_key
from dexvault_core.exceptions import (
    CredentialUnavailableError,
    ReservedWalletNameError,
    WalletExistsError,
)
from dexvault_core.permissions import ANY_WALLET, Permission

logger = logging.getLogger(__name__)


class VaultCipher:
    """Symmetric encryption of wallet keys at rest."""

    def __init__(self, key: str | bytes) -> None:
        self._fernet = Fernet(key)

    @classmethod
    def generate(cls) -> "VaultCipher":
        return cls(Fernet.generate_key())

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Raises cryptography.fernet.InvalidToken on a wrong key or tampered data."""
        return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")

    def __repr__(self) -> str:
        return "VaultCipher(***)"


@dataclass
class VaultUser:
    """A vault user with account-level permissions and wallet grants."""

    name: str
    permissions: Set[Permission] = field(default_factory=set)
    grants: Dict[str, Set[Permission]] = field(default_factory=dict)

    def has_permission(self, action: Permission) -> bool:
        return action in self.permissions

    def is_permitted(self, wallet: str, action: Permission) -> bool:
        if action in self.grants.get(wallet, ()):
            return True
        return action in self.grants.get(ANY_WALLET, ())

    def grant(self, wallet: str, *actions: Permission) -> None:
        self.grants.setdefault(wallet, set()).update(actions)


@dataclass
class VaultWallet:
    """A stored wallet; the private key only exists encrypted."""

    name: str
    encrypted_key: str = field(repr=False)
    cipher: VaultCipher = field(repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_key_manager(self) -> SigningCredential:
        try:
            private_key = self.cipher.decrypt(self.encrypted_key)
            return SigningCredential.from_private_key(private_key)
        except Exception:
            # Decryption and key parsing errors may quote key material.
            logger.error(
                "Signing material could not be materialized",
                extra={"wallet": self.name},
            )
            raise CredentialUnavailableError(self.name) from None

    def get_address(self) -> str:
        with self.get_key_manager() as credential:
            return credential.address


class InMemoryDatastore:
    """Datastore backed by process memory (swap for a persistent store in production)."""

    def __init__(self, cipher: VaultCipher) -> None:
        self._cipher = cipher
        self._users: Dict[str, VaultUser] = {}
        self._wallets: Dict[str, VaultWallet] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # Users and grants
    # =========================================================================

    def add_user(
        self,
        name: str,
        permissions: Iterable[Permission] = (),
        grants: Optional[Mapping[str, Iterable[Permission]]] = None,
    ) -> VaultUser:
        user = VaultUser(name=name, permissions=set(permissions))
        for wallet, actions in (grants or {}).items():
            user.grant(wallet, *actions)
        with self._lock:
            self._users[name] = user
        return user

    def get_user(self, name: str) -> Optional[VaultUser]:
        return self._users.get(name)

    def is_permitted(self, user: str, wallet: str, action: Permission) -> bool:
        u = self._users.get(user)
        if u is None:
            return False
        return u.is_permitted(wallet, action)

    # =========================================================================
    # Wallets
    # =========================================================================

    def get_wallet(self, name: str) -> Optional[VaultWallet]:
        return self._wallets.get(name)

    def create_wallet(self, name: str) -> VaultWallet:
        """Create a wallet with a freshly generated key."""
        return self.import_wallet(name, generate_private_key())

    def import_wallet(self, name: str, private_key: str) -> VaultWallet:
        with self._lock:
            self._check_new_name(name)
            wallet = VaultWallet(
                name=name,
                encrypted_key=self._cipher.encrypt(private_key),
                cipher=self._cipher,
            )
            self._wallets[name] = wallet
        logger.info("Wallet stored", extra={"wallet": name})
        return wallet

    def add_encrypted_wallet(self, name: str, encrypted_key: str) -> VaultWallet:
        """Register a wallet whose key was encrypted elsewhere under the vault key."""
        with self._lock:
            self._check_new_name(name)
            wallet = VaultWallet(name=name, encrypted_key=encrypted_key, cipher=self._cipher)
            self._wallets[name] = wallet
        return wallet

    def _check_new_name(self, name: str) -> None:
        if not name:
            raise ValueError("Wallet name must not be empty.")
        # "*" is the grant key for every wallet
        if name == ANY_WALLET:
            raise ReservedWalletNameError(name)
        if name in self._wallets:
            raise WalletExistsError(name)

    @property
    def wallets(self) -> List[VaultWallet]:
        with self._lock:
            return list(self._wallets.values())

    # =========================================================================
    # Seeding
    # =========================================================================

    @classmethod
    def from_file(cls, path: str | Path, cipher: VaultCipher) -> "InMemoryDatastore":
        """
        Load users, grants and encrypted wallets from a JSON seed file.

        Format::

            {
              "users": [
                {"name": "alice", "permissions": ["Read"],
                 "grants": {"main": ["CreateOrder"], "*": ["Read"]}}
              ],
              "wallets": [{"name": "main", "encrypted_key": "gAAAA..."}]
            }
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        store = cls(cipher)
        for entry in data.get("users", []):
            store.add_user(
                entry["name"],
                permissions=[Permission.parse(p) for p in entry.get("permissions", [])],
                grants={
                    wallet: [Permission.parse(p) for p in actions]
                    for wallet, actions in entry.get("grants", {}).items()
                },
            )
        for entry in data.get("wallets", []):
            store.add_encrypted_wallet(entry["name"], entry["encrypted_key"])
        logger.info(
            "Datastore loaded",
            extra={"users": len(store._users), "wallets": len(store._wallets), "path": str(path)},
        )
        return store
