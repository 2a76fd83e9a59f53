"""
Pytest configuration for dexvault-chain tests.
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
for pkg in ["dexvault-core"]:
    pkg_path = packages_dir / pkg / "src"
    if pkg_path.exists() and str(pkg_path) not in sys.path:
        sys.path.insert(0, str(pkg_path))

os.environ.setdefault("DEXVAULT_ENVIRONMENT", "test")

TEST_PRIVATE_KEY = "0x" + "11" * 32


@pytest.fixture
def private_key() -> str:
    return TEST_PRIVATE_KEY


@pytest.fixture
def credential():
    from dexvault_chain.credentials import SigningCredential

    with SigningCredential.from_private_key(TEST_PRIVATE_KEY) as cred:
        yield cred
