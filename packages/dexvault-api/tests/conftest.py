"""Pytest configuration and fixtures for DexVault API tests."""
from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict
from unittest.mock import AsyncMock

import pytest

# Ensure local packages are importable when running pytest directly.
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
packages_dir = Path(__file__).parent.parent.parent
for pkg in ["dexvault-core", "dexvault-chain", "dexvault-wallet"]:
    pkg_path = packages_dir / pkg / "src"
    if pkg_path.exists() and str(pkg_path) not in sys.path:
        sys.path.insert(0, str(pkg_path))

os.environ.setdefault("DEXVAULT_ENVIRONMENT", "test")

import jwt
from fastapi.testclient import TestClient

from dexvault_api.main import create_app
from dexvault_chain.broadcast import CommitResult
from dexvault_core.config import DexVaultSettings
from dexvault_core.permissions import Permission
from dexvault_wallet.store import InMemoryDatastore, VaultCipher

JWT_SECRET = "test_jwt_secret_for_dexvault_gateway_only_0123456789"
MAIN_KEY = "0x" + "44" * 32
COLD_KEY = "0x" + "55" * 32

# One valid payload per signing action kind
SAMPLE_PAYLOADS: Dict[str, Dict[str, Any]] = {
    "create_order": {"Symbol": "BNB_BTC", "Side": 1, "Price": 100, "Quantity": 5},
    "cancel_order": {"Symbol": "BNB_BTC", "OrderId": "ORD-1"},
    "token_burn": {"Symbol": "XYZ-000", "Amount": 10},
    "deposit": {"ProposalId": 1, "Amount": [{"Denom": "BNB", "Amount": 10}]},
    "freeze_token": {"Symbol": "XYZ-000", "Amount": 10},
    "issue_token": {"Name": "Test Token", "Symbol": "XYZ", "Supply": 1000000, "Mintable": True},
    "list_pair": {"ProposalId": 1, "BaseAssetSymbol": "XYZ-000", "QuoteAssetSymbol": "BNB", "InitPrice": 100},
    "mint_token": {"Symbol": "XYZ-000", "Amount": 10},
    "send_token": {"Transfers": [{"ToAddress": "0xabc", "Coins": [{"Denom": "BNB", "Amount": 1}]}]},
    "submit_proposal": {"Title": "List XYZ", "ProposalType": 2, "VotingPeriod": 3600},
    "unfreeze_token": {"Symbol": "XYZ-000", "Amount": 10},
    "vote_proposal": {"ProposalId": 1, "Option": 1},
}


def make_settings(**overrides) -> DexVaultSettings:
    values = {"environment": "test", "jwt_secret": JWT_SECRET}
    values.update(overrides)
    return DexVaultSettings(_env_file=None, **values)


@pytest.fixture
def settings() -> DexVaultSettings:
    return make_settings()


@pytest.fixture
def sample_payloads() -> Dict[str, Dict[str, Any]]:
    return {kind: dict(payload) for kind, payload in SAMPLE_PAYLOADS.items()}


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build a signed token carrying ``user`` and a JSON payload claim."""

    def _make(user: Any = "alice", payload: Any = None, secret: str = JWT_SECRET, **claims) -> str:
        body: Dict[str, Any] = dict(claims)
        if user is not None:
            body["user"] = user
        if payload is not None:
            body["payload"] = payload if isinstance(payload, str) else json.dumps(payload)
        return jwt.encode(body, secret, algorithm="HS256")

    return _make


@pytest.fixture
def bearer(make_token) -> Callable[..., Dict[str, str]]:
    def _headers(user: Any = "alice", payload: Any = None, **kwargs) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user, payload, **kwargs)}"}

    return _headers


@pytest.fixture
def datastore() -> InMemoryDatastore:
    """alice trades on main; bob may only read cold."""
    store = InMemoryDatastore(VaultCipher.generate())
    store.add_user(
        "alice",
        permissions=[Permission.READ, Permission.CREATE_WALLET],
        grants={"main": [Permission.CREATE_ORDER, Permission.READ]},
    )
    store.add_user("bob", grants={"cold": [Permission.READ]})
    store.import_wallet("main", MAIN_KEY)
    store.import_wallet("cold", COLD_KEY)
    return store


@pytest.fixture
def network() -> AsyncMock:
    client = AsyncMock()
    client.post_transaction.return_value = [
        CommitResult(ok=True, hash="HASH1", data=""),
        CommitResult(ok=False, hash="HASH2", data="insufficient fee"),
    ]
    return client


@pytest.fixture
def app_factory(datastore, network) -> Callable[..., Any]:
    """Build an app over the shared fixtures with settings overrides."""

    def _build(**overrides):
        return create_app(
            make_settings(**overrides),
            datastore=datastore,
            network_client=network,
            configure_logging=False,
        )

    return _build


@pytest.fixture
def app(app_factory):
    return app_factory()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
