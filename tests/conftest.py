"""
Test configuration for the keycert test suite.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from keycert.algorithms import Algorithm, ECDSACurve, KeyGenParams, generate_private_key
from keycert.clock import FixedClock

KEYS_DIR = Path(__file__).resolve().parent / "fixtures" / "keys"


# Test markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to everything under tests/unit."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


def read_key(name: str) -> str:
    return (KEYS_DIR / name).read_text()


@pytest.fixture
def key_pem():
    """Return a loader for PEM files under tests/fixtures/keys."""
    return read_key


@pytest.fixture
def issued_at() -> datetime:
    return datetime(2019, 6, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock(issued_at) -> FixedClock:
    return FixedClock(issued_at)


@pytest.fixture(scope="session")
def rsa_key():
    return generate_private_key(Algorithm.RSA, KeyGenParams(rsa_bits=2048))


@pytest.fixture(scope="session")
def ecdsa_key():
    return generate_private_key(Algorithm.ECDSA, KeyGenParams(ecdsa_curve=ECDSACurve.P256))


@pytest.fixture(scope="session")
def ed25519_key():
    return generate_private_key(Algorithm.ED25519)
