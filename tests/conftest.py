"""
Pytest configuration and shared fixtures for transaction inclusion tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_chain = importlib.import_module("fixtures.chain_fixtures")

make_block = _chain.make_block
make_header = _chain.make_header
make_transaction = _chain.make_transaction
InMemoryChainProvider = _chain.InMemoryChainProvider


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def three_tx_block():
    """Block with transactions T0, T1, T2 and a header committing to them."""
    return make_block(3)


@pytest.fixture
def large_block():
    """Block large enough to produce extension and nested branch nodes."""
    return make_block(300)


@pytest.fixture
def chain_provider(three_tx_block):
    """In-memory provider serving the three-transaction block as 17000000."""
    return InMemoryChainProvider({17_000_000: three_tx_block})


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep TXINCLUSION_* variables from the developer shell out of tests."""
    import os
    for name in list(os.environ):
        if name.startswith("TXINCLUSION_"):
            monkeypatch.delenv(name, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_check_passed():
    """Helper to assert a specific check passed in a list of CheckResults."""
    def _assert(checks, check_id: str):
        matching = [c for c in checks if c.check_id == check_id]
        assert len(matching) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in checks]}"
        assert matching[0].ok, f"Check '{check_id}' failed: {matching[0].message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    """Helper to assert a specific check failed in a list of CheckResults."""
    def _assert(checks, check_id: str):
        matching = [c for c in checks if c.check_id == check_id]
        assert len(matching) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in checks]}"
        assert not matching[0].ok, f"Check '{check_id}' unexpectedly passed"
    return _assert
