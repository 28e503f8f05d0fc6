"""Environment-driven configuration for credstore.

Recognised variables:

- ``CREDSTORE_BACKEND``: ``keyring`` (default) or ``memory``
- ``CREDSTORE_SERVICE``: keyring service name (default ``credstore``)
- ``CREDSTORE_LOG_LEVEL``: logging level name (default ``INFO``)
- ``CREDSTORE_REQUIRE_SECURE_BACKEND``: refuse keyring backends that
  assess_keyring_backend() judges insecure
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from credstore.core.exceptions import ConfigurationError
from credstore.security.keystore import DEFAULT_SERVICE, KeyringSecureStore, assess_keyring_backend
from credstore.security.store import MemorySecureStore, SecureStore

logger = logging.getLogger(__name__)

BACKENDS = ("keyring", "memory")
_TRUE = ("1", "true", "yes", "on")
_FALSE = ("", "0", "false", "no", "off")


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "keyring"
    service: str = DEFAULT_SERVICE
    log_level: int = logging.INFO
    require_secure_backend: bool = False


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def parse_log_level(raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"unknown log level {raw!r}")
    return level


def load_config(environ: Optional[Mapping[str, str]] = None) -> StoreConfig:
    """Build a StoreConfig from ``environ`` (defaults to os.environ)."""
    env = os.environ if environ is None else environ

    backend = env.get("CREDSTORE_BACKEND", "keyring").strip().lower()
    if backend not in BACKENDS:
        raise ConfigurationError(f"CREDSTORE_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")

    service = env.get("CREDSTORE_SERVICE", DEFAULT_SERVICE).strip()
    if not service:
        raise ConfigurationError("CREDSTORE_SERVICE must not be empty")

    return StoreConfig(
        backend=backend,
        service=service,
        log_level=parse_log_level(env.get("CREDSTORE_LOG_LEVEL", "INFO")),
        require_secure_backend=_parse_bool(
            "CREDSTORE_REQUIRE_SECURE_BACKEND", env.get("CREDSTORE_REQUIRE_SECURE_BACKEND", "")
        ),
    )


def build_store(config: StoreConfig) -> SecureStore:
    """Construct the SecureStore selected by ``config``."""
    if config.backend == "memory":
        return MemorySecureStore()

    secure, msg = assess_keyring_backend()
    if not secure:
        if config.require_secure_backend:
            raise ConfigurationError(f"refusing to use keyring backend: {msg}")
        logger.warning("keyring backend may not be secure: %s", msg)

    try:
        return KeyringSecureStore(service=config.service)
    except RuntimeError as e:
        raise ConfigurationError(str(e)) from e
