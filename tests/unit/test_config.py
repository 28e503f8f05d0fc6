"""
Unit tests for environment configuration.
"""

import logging
from unittest.mock import patch

import pytest

from credstore.config import StoreConfig, build_store, load_config
from credstore.core.exceptions import ConfigurationError
from credstore.security.keystore import KeyringSecureStore
from credstore.security.store import MemorySecureStore


def test_defaults():
    config = load_config({})
    assert config == StoreConfig()
    assert config.backend == "keyring"
    assert config.service == "credstore"
    assert config.log_level == logging.INFO
    assert config.require_secure_backend is False


def test_reads_environment():
    config = load_config(
        {
            "CREDSTORE_BACKEND": "Memory",
            "CREDSTORE_SERVICE": "my-app",
            "CREDSTORE_LOG_LEVEL": "debug",
            "CREDSTORE_REQUIRE_SECURE_BACKEND": "yes",
        }
    )
    assert config.backend == "memory"
    assert config.service == "my-app"
    assert config.log_level == logging.DEBUG
    assert config.require_secure_backend is True


@pytest.mark.parametrize(
    "env",
    [
        {"CREDSTORE_BACKEND": "postgres"},
        {"CREDSTORE_SERVICE": "   "},
        {"CREDSTORE_LOG_LEVEL": "LOUD"},
        {"CREDSTORE_REQUIRE_SECURE_BACKEND": "maybe"},
    ],
)
def test_invalid_values_raise(env):
    with pytest.raises(ConfigurationError):
        load_config(env)


def test_padding_is_not_configurable():
    """Only OAEP is used; a legacy padding setting has no effect."""
    config = load_config({"CREDSTORE_PADDING": "pkcs1v15"})
    assert config == StoreConfig()
    assert not hasattr(config, "padding")


def test_reads_os_environ_by_default(monkeypatch):
    monkeypatch.setenv("CREDSTORE_BACKEND", "memory")
    assert load_config().backend == "memory"


# ==============================================================================
# Tests: build_store
# ==============================================================================

def test_build_memory_store():
    assert isinstance(build_store(StoreConfig(backend="memory")), MemorySecureStore)


def test_build_keyring_store():
    with patch("credstore.config.assess_keyring_backend", return_value=(True, "fine")), \
            patch("credstore.security.keystore.keyring", autospec=True):
        store = build_store(StoreConfig(service="svc"))
    assert isinstance(store, KeyringSecureStore)
    assert store.service == "svc"


def test_build_keyring_store_warns_on_insecure_backend(caplog):
    with patch("credstore.config.assess_keyring_backend", return_value=(False, "plaintext")), \
            patch("credstore.security.keystore.keyring", autospec=True):
        with caplog.at_level(logging.WARNING, logger="credstore.config"):
            store = build_store(StoreConfig())
    assert isinstance(store, KeyringSecureStore)
    assert "plaintext" in caplog.text


def test_build_keyring_store_refuses_insecure_backend_when_required():
    with patch("credstore.config.assess_keyring_backend", return_value=(False, "plaintext")):
        with pytest.raises(ConfigurationError, match="refusing"):
            build_store(StoreConfig(require_secure_backend=True))


def test_build_keyring_store_without_keyring():
    with patch("credstore.config.assess_keyring_backend", return_value=(True, "fine")), \
            patch("credstore.security.keystore.keyring", None):
        with pytest.raises(ConfigurationError, match="keyring package is not available"):
            build_store(StoreConfig())
