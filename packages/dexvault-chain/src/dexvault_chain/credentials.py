"""Request-scoped signing credentials.

A SigningCredential wraps a local secp256k1 account. It exists for the
duration of one request: the dispatcher opens it as a context manager and the
key reference is dropped on exit. Key material never appears in ``repr``,
logs or serialized output.
"""
from __future__ import annotations

from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount


class CredentialReleasedError(RuntimeError):
    """Raised when a released credential is asked to sign."""


class SigningCredential:
    """Opaque signing handle plus its derived public address."""

    __slots__ = ("_account", "_address")

    def __init__(self, account: LocalAccount) -> None:
        self._account: Optional[LocalAccount] = account
        self._address: str = account.address

    @classmethod
    def from_private_key(cls, private_key: str | bytes) -> "SigningCredential":
        return cls(Account.from_key(private_key))

    @property
    def address(self) -> str:
        return self._address

    @property
    def released(self) -> bool:
        return self._account is None

    def sign(self, message: bytes) -> str:
        """Sign ``message`` (EIP-191 personal message) and return the hex signature."""
        if self._account is None:
            raise CredentialReleasedError("Signing credential has been released")
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return "0x" + bytes(signed.signature).hex()

    def release(self) -> None:
        self._account = None

    def __enter__(self) -> "SigningCredential":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "active"
        return f"SigningCredential(address={self._address!r}, {state})"

    def __reduce__(self):
        raise TypeError("SigningCredential cannot be serialized")


def generate_private_key() -> str:
    """Create a fresh private key, hex-encoded with 0x prefix."""
    account = Account.create()
    return "0x" + bytes(account.key).hex()
