"""Key lifecycle on top of a SecureStore.

KeyManager owns create/read/update/delete of key material and generic secrets
by tag, and RSA key pair generation. Every public method returns a value
(Outcome, bytes, a key handle or None); store and crypto failures are mapped
onto the error taxonomy in credstore.core.exceptions and carried in the
Outcome rather than raised.

State per (class, tag, kind):

    ABSENT  --save-->   PRESENT
    PRESENT --update--> PRESENT
    PRESENT --delete--> ABSENT
    ABSENT  --update--> ABSENT   (NotFoundError)
    ABSENT  --delete--> ABSENT   (success)

The manager keeps no key material between calls. Without ``serialize=True``
concurrent writers on the same tag race at the store and the store decides
which write wins; with it, each mutating sequence holds one of a fixed pool
of locks chosen by the entry's hash (in-process only).
"""
from __future__ import annotations

import contextlib
import logging
import os
import threading
from typing import Any, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa

from credstore.core.exceptions import (
    CredStoreError,
    CryptoFailureError,
    NotFoundError,
    StoreRejectedError,
)
from credstore.core.models import ItemAttributes, KeyKind, KeyPair, Outcome, StoreStatus
from .store import SecureStore

logger = logging.getLogger(__name__)

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537

DEFAULT_PRIVATE_TAG = "credstore.privatekey"
DEFAULT_PUBLIC_TAG = "credstore.publickey"

LOCK_STRIPES = 64


def _material_ok(kind: Optional[KeyKind], material: Any) -> bool:
    # generic secrets and symmetric keys are raw bytes; asymmetric entries are handles
    if kind is KeyKind.ASYMMETRIC_PRIVATE:
        return isinstance(material, rsa.RSAPrivateKey)
    if kind is KeyKind.ASYMMETRIC_PUBLIC:
        return isinstance(material, rsa.RSAPublicKey)
    return isinstance(material, (bytes, bytearray))


class KeyManager:
    def __init__(self, store: SecureStore, serialize: bool = False):
        self.store = store
        self.serialize = serialize
        self._locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))

    # ------------------------------------------------------------------
    # Key entries
    # ------------------------------------------------------------------

    def save(self, tag: str, material: Any, kind: KeyKind = KeyKind.SYMMETRIC) -> Outcome[None]:
        """Store material under tag, replacing any existing entry (upsert)."""
        return self._save(ItemAttributes.key(tag, kind), material)

    def load(self, tag: str, kind: KeyKind = KeyKind.SYMMETRIC) -> Optional[bytes]:
        """Return the stored bytes for tag, or None when there is no entry."""
        value = self._query(ItemAttributes.key(tag, kind))
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return None

    def update(self, tag: str, material: Any, kind: KeyKind = KeyKind.SYMMETRIC) -> Outcome[None]:
        """Replace the value of an existing entry. Never creates one."""
        return self._update(ItemAttributes.key(tag, kind), material)

    def delete(self, tag: str, kind: KeyKind = KeyKind.SYMMETRIC) -> Outcome[None]:
        """Remove the entry under tag. Deleting an absent entry succeeds."""
        return self._delete(ItemAttributes.key(tag, kind))

    # ------------------------------------------------------------------
    # Generic secrets
    # ------------------------------------------------------------------

    def save_secret(self, tag: str, blob: bytes) -> Outcome[None]:
        return self._save(ItemAttributes.secret(tag), blob)

    def load_secret(self, tag: str) -> Optional[bytes]:
        value = self._query(ItemAttributes.secret(tag))
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return None

    def update_secret(self, tag: str, blob: bytes) -> Outcome[None]:
        return self._update(ItemAttributes.secret(tag), blob)

    def delete_secret(self, tag: str) -> Outcome[None]:
        return self._delete(ItemAttributes.secret(tag))

    # ------------------------------------------------------------------
    # Asymmetric keys
    # ------------------------------------------------------------------

    def generate_key_pair(
        self,
        private_tag: str = DEFAULT_PRIVATE_TAG,
        public_tag: str = DEFAULT_PUBLIC_TAG,
        persist: bool = True,
        key_size: int = KEY_SIZE,
    ) -> Outcome[KeyPair]:
        """
        Generate an RSA key pair and, when ``persist`` is set, store both halves.

        The private key goes under (private_tag, ASYMMETRIC_PRIVATE) and the
        public key under (public_tag, ASYMMETRIC_PUBLIC), each replacing any
        existing entry. If the second write fails the first is erased again so
        a failed call leaves neither half behind.
        """
        try:
            private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            logger.warning("key pair generation failed: %s", e)
            return Outcome.failure(CryptoFailureError(f"key pair generation failed: {e}"))

        public_key = private_key.public_key()
        if not persist:
            return Outcome.success(KeyPair(private_key, public_key))

        saved = self.save(private_tag, private_key, KeyKind.ASYMMETRIC_PRIVATE)
        if not saved:
            return Outcome.failure(saved.error)

        saved = self.save(public_tag, public_key, KeyKind.ASYMMETRIC_PUBLIC)
        if not saved:
            self.delete(private_tag, KeyKind.ASYMMETRIC_PRIVATE)
            return Outcome.failure(saved.error)

        logger.info("generated %d-bit key pair under %r / %r", key_size, private_tag, public_tag)
        return Outcome.success(KeyPair(private_key, public_key, private_tag, public_tag))

    @staticmethod
    def generate_symmetric_key(bits: int = 256) -> bytes:
        if bits <= 0 or bits % 8:
            raise ValueError("symmetric key size must be a positive multiple of 8 bits")
        return os.urandom(bits // 8)

    @staticmethod
    def derive_public_key(private_key: Any) -> Optional[rsa.RSAPublicKey]:
        if not isinstance(private_key, rsa.RSAPrivateKey):
            return None
        return private_key.public_key()

    def retrieve_private_key(self, tag: str = DEFAULT_PRIVATE_TAG) -> Optional[rsa.RSAPrivateKey]:
        value = self._query(ItemAttributes.key(tag, KeyKind.ASYMMETRIC_PRIVATE))
        if isinstance(value, rsa.RSAPrivateKey):
            return value
        if value is None:
            logger.debug("no private key stored under %r", tag)
        return None

    def retrieve_public_key(self, tag: str = DEFAULT_PUBLIC_TAG) -> Optional[rsa.RSAPublicKey]:
        value = self._query(ItemAttributes.key(tag, KeyKind.ASYMMETRIC_PUBLIC))
        if isinstance(value, rsa.RSAPublicKey):
            return value
        if value is None:
            logger.debug("no public key stored under %r", tag)
        return None

    # ------------------------------------------------------------------
    # Store plumbing
    # ------------------------------------------------------------------

    def _guard(self, attributes: ItemAttributes):
        if not self.serialize:
            return contextlib.nullcontext()
        return self._locks[hash(attributes) % len(self._locks)]

    def _validate(self, attributes: ItemAttributes, material: Any) -> Optional[CredStoreError]:
        if not attributes.is_valid():
            return StoreRejectedError(f"invalid attributes for tag {attributes.tag!r}", StoreStatus.REJECTED)
        if not _material_ok(attributes.key_kind, material):
            return StoreRejectedError(
                f"unsupported material {type(material).__name__} for tag {attributes.tag!r}",
                StoreStatus.REJECTED,
            )
        return None

    def _fail(self, action: str, error: CredStoreError) -> Outcome[None]:
        logger.warning("%s failed: %s", action, error)
        return Outcome.failure(error)

    def _save(self, attributes: ItemAttributes, material: Any) -> Outcome[None]:
        error = self._validate(attributes, material)
        if error is not None:
            return self._fail("save", error)

        with self._guard(attributes):
            erased = self.store.erase(attributes)
            if erased not in (StoreStatus.SUCCESS, StoreStatus.NOT_FOUND):
                return self._fail(
                    "save",
                    StoreRejectedError(
                        f"store rejected erase before insert for tag {attributes.tag!r} ({erased.value})", erased
                    ),
                )
            status = self.store.insert(attributes, material)

        if status is not StoreStatus.SUCCESS:
            return self._fail(
                "save",
                StoreRejectedError(f"store rejected insert for tag {attributes.tag!r} ({status.value})", status),
            )
        return Outcome.success()

    def _query(self, attributes: ItemAttributes) -> Optional[Any]:
        if not attributes.is_valid():
            return None
        return self.store.query(attributes)

    def _update(self, attributes: ItemAttributes, material: Any) -> Outcome[None]:
        error = self._validate(attributes, material)
        if error is not None:
            return self._fail("update", error)

        with self._guard(attributes):
            status = self.store.update(attributes, material)

        if status is StoreStatus.NOT_FOUND:
            return self._fail("update", NotFoundError(f"no entry for tag {attributes.tag!r}"))
        if status is not StoreStatus.SUCCESS:
            return self._fail(
                "update",
                StoreRejectedError(f"store rejected update for tag {attributes.tag!r} ({status.value})", status),
            )
        return Outcome.success()

    def _delete(self, attributes: ItemAttributes) -> Outcome[None]:
        if not attributes.is_valid():
            return self._fail(
                "delete",
                StoreRejectedError(f"invalid attributes for tag {attributes.tag!r}", StoreStatus.REJECTED),
            )

        with self._guard(attributes):
            status = self.store.erase(attributes)

        if status in (StoreStatus.SUCCESS, StoreStatus.NOT_FOUND):
            return Outcome.success()
        return self._fail(
            "delete",
            StoreRejectedError(f"store rejected erase for tag {attributes.tag!r} ({status.value})", status),
        )
