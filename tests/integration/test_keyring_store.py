"""
Integration tests: KeyringSecureStore driven through the real keyring API.

A dict-backed KeyringBackend is installed with keyring.set_keyring so the
full keyring call path (module functions -> backend) is exercised without
touching the developer's OS keystore.
"""

import pytest

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from credstore.core.models import KeyKind
from credstore.security.credentials import CredentialService
from credstore.security.crypto import CryptoService
from credstore.security.key_manager import KeyManager
from credstore.security.keystore import KeyringSecureStore, assess_keyring_backend


class InMemoryKeyring(KeyringBackend):
    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("password not found") from None


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def backend():
    previous = keyring.get_keyring()
    backend = InMemoryKeyring()
    keyring.set_keyring(backend)
    try:
        yield backend
    finally:
        keyring.set_keyring(previous)


@pytest.fixture
def manager(backend):
    return KeyManager(KeyringSecureStore(service="credstore-test"))


# ==============================================================================
# Tests
# ==============================================================================

def test_backend_assessment_sees_installed_backend(backend):
    secure, msg = assess_keyring_backend()
    assert secure is True
    assert "InMemoryKeyring" in msg


def test_manage_key_sequence(manager, backend):
    k1 = KeyManager.generate_symmetric_key()
    k2 = KeyManager.generate_symmetric_key()

    assert manager.save("com.example.mykey", k1)
    assert manager.load("com.example.mykey") == k1
    assert manager.update("com.example.mykey", k2)
    assert manager.load("com.example.mykey") == k2
    assert manager.delete("com.example.mykey")
    assert manager.load("com.example.mykey") is None
    assert backend.passwords == {}


def test_update_and_delete_on_absent_tag(manager, backend):
    assert not manager.update("missing", b"k")
    assert manager.delete("missing")
    assert backend.passwords == {}


def test_key_pair_survives_a_new_store_instance(manager, backend):
    pair = manager.generate_key_pair().unwrap()
    assert ("credstore-test", "key:private:credstore.privatekey") in backend.passwords
    assert ("credstore-test", "key:public:credstore.publickey") in backend.passwords

    reopened = KeyManager(KeyringSecureStore(service="credstore-test"))
    private_key = reopened.retrieve_private_key()
    public_key = reopened.retrieve_public_key()
    assert private_key.private_numbers() == pair.private_key.private_numbers()
    assert public_key.public_numbers() == pair.public_key.public_numbers()


def test_credential_roundtrip_through_keyring(manager, backend):
    pair = manager.generate_key_pair().unwrap()
    service = CredentialService(manager, CryptoService())

    assert service.save_credential("alice", "s3cr3t", pair.public_key)
    stored = backend.passwords[("credstore-test", "generic:-:credstore.credential")]
    assert "s3cr3t" not in stored

    # decrypt with the private key as reloaded from the keyring
    loaded = service.load_credential(manager.retrieve_private_key())
    assert (loaded.identifier, loaded.secret) == ("alice", "s3cr3t")


def test_services_are_isolated(backend):
    first = KeyManager(KeyringSecureStore(service="app-one"))
    second = KeyManager(KeyringSecureStore(service="app-two"))
    first.save("shared", b"one")
    assert second.load("shared") is None
    assert first.load("shared", KeyKind.SYMMETRIC) == b"one"
