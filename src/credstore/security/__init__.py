"""Security helpers: secure store adapters, key lifecycle and RSA encryption for credstore.

This package provides:
- a SecureStore interface with keyring-backed and in-memory implementations
- KeyManager for tag-scoped key/secret CRUD and RSA key pair generation
- CryptoService for RSA-OAEP public-key encryption of small payloads
- CredentialService for storing encrypted identifier/secret records
"""

from .store import SecureStore, MemorySecureStore
from .keystore import KeyringSecureStore, assess_keyring_backend
from .key_manager import KeyManager, DEFAULT_PRIVATE_TAG, DEFAULT_PUBLIC_TAG
from .crypto import CryptoService
from .credentials import CredentialService, DEFAULT_CREDENTIAL_TAG

__all__ = [
    "SecureStore",
    "MemorySecureStore",
    "KeyringSecureStore",
    "assess_keyring_backend",
    "KeyManager",
    "DEFAULT_PRIVATE_TAG",
    "DEFAULT_PUBLIC_TAG",
    "CryptoService",
    "CredentialService",
    "DEFAULT_CREDENTIAL_TAG",
]
