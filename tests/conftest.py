"""
Shared fixtures for credstore tests.

RSA key generation is slow enough to matter, so key pairs are made once per
session and shared.
"""

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from credstore.security.store import MemorySecureStore
from credstore.security.key_manager import KeyManager


def _rsa_pair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


@pytest.fixture(scope="session")
def rsa_pair():
    """A (private, public) RSA-2048 pair."""
    return _rsa_pair()


@pytest.fixture(scope="session")
def other_rsa_pair():
    """A second, independently generated RSA-2048 pair."""
    return _rsa_pair()


@pytest.fixture
def memory_store():
    """Returns a fresh, empty in-memory store."""
    return MemorySecureStore()


@pytest.fixture
def manager(memory_store):
    """Returns a KeyManager over a fresh in-memory store."""
    return KeyManager(memory_store)
