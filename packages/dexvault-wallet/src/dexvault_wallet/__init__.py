"""Custodial wallet storage and credential resolution for DexVault."""

from .resolver import resolve_credential
from .store import InMemoryDatastore, VaultCipher, VaultUser, VaultWallet

__all__ = [
    "resolve_credential",
    "InMemoryDatastore",
    "VaultCipher",
    "VaultUser",
    "VaultWallet",
]
