"""Tests for the in-memory vault datastore."""
from __future__ import annotations

import json

import pytest
from eth_account import Account

from dexvault_core.datastore import Datastore
from dexvault_core.exceptions import (
    CredentialUnavailableError,
    ReservedWalletNameError,
    WalletExistsError,
)
from dexvault_core.permissions import ANY_WALLET, Permission
from dexvault_wallet.store import InMemoryDatastore, VaultCipher

KEY = "0x" + "22" * 32


class TestUsersAndGrants:
    def test_wallet_grant(self, datastore):
        datastore.add_user("alice", grants={"main": [Permission.CREATE_ORDER]})

        assert datastore.is_permitted("alice", "main", Permission.CREATE_ORDER)
        assert not datastore.is_permitted("alice", "main", Permission.TOKEN_BURN)
        assert not datastore.is_permitted("alice", "cold", Permission.CREATE_ORDER)

    def test_wildcard_grant(self, datastore):
        datastore.add_user("auditor", grants={ANY_WALLET: [Permission.READ]})
        assert datastore.is_permitted("auditor", "anything", Permission.READ)
        assert not datastore.is_permitted("auditor", "anything", Permission.SEND_TOKEN)

    def test_unknown_user_not_permitted(self, datastore):
        assert not datastore.is_permitted("mallory", "main", Permission.READ)

    def test_account_permissions(self, datastore):
        user = datastore.add_user("alice", permissions=[Permission.CREATE_WALLET])
        assert user.has_permission(Permission.CREATE_WALLET)
        assert not user.has_permission(Permission.READ)
        assert datastore.get_user("alice") is user
        assert datastore.get_user("bob") is None


class TestWallets:
    def test_satisfies_protocol(self, datastore):
        assert isinstance(datastore, Datastore)

    def test_create_wallet_generates_key(self, datastore):
        wallet = datastore.create_wallet("main")
        assert wallet.get_address().startswith("0x")
        assert datastore.get_wallet("main") is wallet

    def test_key_encrypted_at_rest(self, datastore):
        wallet = datastore.import_wallet("main", KEY)
        assert KEY not in wallet.encrypted_key
        assert KEY not in repr(wallet)
        assert wallet.get_address() == Account.from_key(KEY).address

    def test_duplicate_rejected(self, datastore):
        datastore.create_wallet("main")
        with pytest.raises(WalletExistsError):
            datastore.create_wallet("main")

    def test_empty_name_rejected(self, datastore):
        with pytest.raises(ValueError):
            datastore.create_wallet("")

    def test_wildcard_name_reserved(self, datastore, cipher):
        with pytest.raises(ReservedWalletNameError):
            datastore.create_wallet(ANY_WALLET)
        with pytest.raises(ReservedWalletNameError):
            datastore.add_encrypted_wallet(ANY_WALLET, cipher.encrypt(KEY))
        assert datastore.get_wallet(ANY_WALLET) is None

    def test_enumeration_in_insertion_order(self, datastore):
        for name in ("zeta", "alpha", "mid"):
            datastore.create_wallet(name)
        assert [w.name for w in datastore.wallets] == ["zeta", "alpha", "mid"]

    def test_wallets_returns_a_copy(self, datastore):
        datastore.create_wallet("main")
        datastore.wallets.clear()
        assert len(datastore.wallets) == 1

    def test_credential_under_wrong_key_unavailable(self, datastore):
        foreign = VaultCipher.generate().encrypt(KEY)
        wallet = datastore.add_encrypted_wallet("foreign", foreign)
        with pytest.raises(CredentialUnavailableError) as exc_info:
            wallet.get_key_manager()
        assert KEY not in str(exc_info.value)
        assert "foreign" in str(exc_info.value)

    def test_malformed_key_unavailable(self, datastore, cipher):
        wallet = datastore.add_encrypted_wallet("broken", cipher.encrypt("not-a-key"))
        with pytest.raises(CredentialUnavailableError):
            wallet.get_key_manager()

    def test_each_credential_is_fresh(self, datastore):
        wallet = datastore.import_wallet("main", KEY)
        with wallet.get_key_manager() as first:
            pass
        assert first.released
        assert not wallet.get_key_manager().released


class TestFromFile:
    def test_seed_file(self, tmp_path, cipher):
        seed = {
            "users": [
                {
                    "name": "alice",
                    "permissions": ["Read", "CreateWallet"],
                    "grants": {"main": ["CreateOrder"], "*": ["Read"]},
                },
            ],
            "wallets": [{"name": "main", "encrypted_key": cipher.encrypt(KEY)}],
        }
        path = tmp_path / "vault.json"
        path.write_text(json.dumps(seed), encoding="utf-8")

        store = InMemoryDatastore.from_file(path, cipher)

        assert store.get_user("alice").has_permission(Permission.CREATE_WALLET)
        assert store.is_permitted("alice", "main", Permission.CREATE_ORDER)
        assert store.is_permitted("alice", "other", Permission.READ)
        assert store.get_wallet("main").get_address() == Account.from_key(KEY).address

    def test_seed_file_rejects_reserved_wallet_name(self, tmp_path, cipher):
        seed = {"wallets": [{"name": "*", "encrypted_key": cipher.encrypt(KEY)}]}
        path = tmp_path / "vault.json"
        path.write_text(json.dumps(seed), encoding="utf-8")

        with pytest.raises(ReservedWalletNameError):
            InMemoryDatastore.from_file(path, cipher)
