"""
Pytest configuration for dexvault-wallet tests.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Add package source to path
package_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(package_src))

# Add cross-package imports
packages_dir = Path(__file__).parent.parent.parent
for pkg in ["dexvault-core", "dexvault-chain"]:
    pkg_path = packages_dir / pkg / "src"
    if pkg_path.exists() and str(pkg_path) not in sys.path:
        sys.path.insert(0, str(pkg_path))

os.environ.setdefault("DEXVAULT_ENVIRONMENT", "test")


@pytest.fixture
def cipher():
    from dexvault_wallet.store import VaultCipher

    return VaultCipher.generate()


@pytest.fixture
def datastore(cipher):
    from dexvault_wallet.store import InMemoryDatastore

    return InMemoryDatastore(cipher)
