"""
Pytest configuration for dexvault-core tests.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

# Add package source to path
package_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(package_src))

# Set test environment
os.environ.setdefault("DEXVAULT_ENVIRONMENT", "test")
