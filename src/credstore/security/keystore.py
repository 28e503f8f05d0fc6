"""OS keystore integration using keyring as the platform SecureStore.

Entries are written under a single keyring service, one keyring account per
(item class, key kind, tag). keyring only stores strings, so values are
prefixed with their type and base64-encoded before storage:

- ``raw:<b64>``          opaque bytes (generic secrets, symmetric keys)
- ``rsa-private:<b64>``  RSA private key handle, DER PKCS#8
- ``rsa-public:<b64>``   RSA public key handle, DER SubjectPublicKeyInfo

Key handles are only serialized here, at the store boundary; the rest of the
package passes them around as opaque ``cryptography`` key objects. Do not
assume keyring provides hardware-backed security on all platforms, see
assess_keyring_backend().
"""
import base64
import binascii
import logging
from typing import Any, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from credstore.core.models import ItemAttributes, StoreStatus
from .store import SecureStore

try:
    import keyring
    from keyring.errors import KeyringError, PasswordDeleteError
except Exception:
    keyring = None

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "credstore"

_RAW = "raw"
_RSA_PRIVATE = "rsa-private"
_RSA_PUBLIC = "rsa-public"


def _require_keyring():
    if keyring is None:
        raise RuntimeError("keyring package is not available; install keyring to use keystore features")


def assess_keyring_backend() -> tuple[bool, str]:
    """Return (is_secure, message) describing the current keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms. If `keyring` is not available this returns (False, reason).
    """
    if keyring is None:
        return False, "keyring package is not installed"

    try:
        backend = keyring.get_keyring()
    except Exception as e:
        return False, f"failed to get keyring backend: {e}"

    name = backend.__class__.__name__
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("Plaintext", "Uncrypted", "Simple", "File")
    if any(tok in name for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    # treat known platform backends as acceptable
    if "Win" in name or "Keychain" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"


def account_name(attributes: ItemAttributes) -> str:
    """Keyring account for an entry: ``<class>:<kind>:<tag>``."""
    kind = attributes.key_kind.value if attributes.key_kind is not None else "-"
    return f"{attributes.item_class.value}:{kind}:{attributes.tag}"


def encode_value(value: Any) -> Optional[str]:
    """Encode bytes or an RSA key handle as a keyring-storable string.

    Returns None for values this store cannot hold.
    """
    if isinstance(value, (bytes, bytearray)):
        prefix, raw = _RAW, bytes(value)
    elif isinstance(value, rsa.RSAPrivateKey):
        prefix = _RSA_PRIVATE
        raw = value.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    elif isinstance(value, rsa.RSAPublicKey):
        prefix = _RSA_PUBLIC
        raw = value.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    else:
        return None
    return f"{prefix}:{base64.b64encode(raw).decode('ascii')}"


def decode_value(secret: str) -> Optional[Any]:
    """Inverse of encode_value; returns None on corrupt or unknown data."""
    prefix, sep, body = secret.partition(":")
    if not sep:
        return None
    try:
        raw = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError):
        return None

    if prefix == _RAW:
        return raw
    try:
        if prefix == _RSA_PRIVATE:
            return serialization.load_der_private_key(raw, password=None)
        if prefix == _RSA_PUBLIC:
            return serialization.load_der_public_key(raw)
    except (ValueError, TypeError):
        return None
    return None


class KeyringSecureStore(SecureStore):
    """SecureStore backed by the active keyring backend.

    keyring has no atomic insert-if-absent, so insert is check-then-set; two
    processes inserting the same account race at the backend.
    """

    def __init__(self, service: str = DEFAULT_SERVICE):
        _require_keyring()
        self.service = service

    def insert(self, attributes: ItemAttributes, value: Any) -> StoreStatus:
        if not attributes.is_valid():
            return StoreStatus.REJECTED
        secret = encode_value(value)
        if secret is None:
            return StoreStatus.REJECTED
        account = account_name(attributes)
        try:
            if keyring.get_password(self.service, account) is not None:
                return StoreStatus.DUPLICATE
            keyring.set_password(self.service, account, secret)
        except KeyringError as e:
            logger.warning("keyring rejected insert of %s: %s", account, e)
            return StoreStatus.REJECTED
        return StoreStatus.SUCCESS

    def query(self, attributes: ItemAttributes) -> Optional[Any]:
        account = account_name(attributes)
        try:
            secret = keyring.get_password(self.service, account)
        except KeyringError as e:
            logger.warning("keyring query of %s failed: %s", account, e)
            return None
        if secret is None:
            return None
        value = decode_value(secret)
        if value is None:
            logger.warning("keyring entry %s is corrupt; treating as absent", account)
        return value

    def update(self, attributes: ItemAttributes, value: Any) -> StoreStatus:
        if not attributes.is_valid():
            return StoreStatus.REJECTED
        secret = encode_value(value)
        if secret is None:
            return StoreStatus.REJECTED
        account = account_name(attributes)
        try:
            if keyring.get_password(self.service, account) is None:
                return StoreStatus.NOT_FOUND
            keyring.set_password(self.service, account, secret)
        except KeyringError as e:
            logger.warning("keyring rejected update of %s: %s", account, e)
            return StoreStatus.REJECTED
        return StoreStatus.SUCCESS

    def erase(self, attributes: ItemAttributes) -> StoreStatus:
        account = account_name(attributes)
        try:
            keyring.delete_password(self.service, account)
        except PasswordDeleteError:
            return StoreStatus.NOT_FOUND
        except KeyringError as e:
            logger.warning("keyring rejected erase of %s: %s", account, e)
            return StoreStatus.REJECTED
        return StoreStatus.SUCCESS
