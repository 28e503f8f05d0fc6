"""
Base data models for store entries, key pairs and credential records
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from .exceptions import CredStoreError, SerializationError

T = TypeVar("T")


class ItemClass(Enum):
    # Which class of item the secure store holds under a tag
    GENERIC_SECRET = "generic"
    KEY = "key"


class KeyKind(Enum):
    # Role of a key entry; each kind is its own tag namespace
    SYMMETRIC = "symmetric"
    ASYMMETRIC_PRIVATE = "private"
    ASYMMETRIC_PUBLIC = "public"


class StoreStatus(Enum):
    # Result codes reported by a SecureStore
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ItemAttributes:
    """Composite key addressing one entry in the secure store."""

    item_class: ItemClass
    tag: str
    key_kind: Optional[KeyKind] = None

    @classmethod
    def secret(cls, tag: str) -> "ItemAttributes":
        return cls(ItemClass.GENERIC_SECRET, tag)

    @classmethod
    def key(cls, tag: str, kind: KeyKind) -> "ItemAttributes":
        return cls(ItemClass.KEY, tag, kind)

    def is_valid(self) -> bool:
        if not isinstance(self.tag, str) or not self.tag:
            return False
        if self.item_class is ItemClass.KEY:
            return self.key_kind is not None
        return self.key_kind is None


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Value-or-failure result returned across the public boundary.

    ``ok`` is true when no error is attached; truthiness follows ``ok`` so
    callers can write ``if manager.save(tag, data):``.
    """

    value: Optional[T] = None
    error: Optional[CredStoreError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CredStoreError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class KeyPair:
    """RSA key handles produced together by one generation call."""

    private_key: Any
    public_key: Any
    private_tag: Optional[str] = None
    public_tag: Optional[str] = None

    def __repr__(self) -> str:
        return f"KeyPair(private_tag={self.private_tag!r}, public_tag={self.public_tag!r})"


@dataclass(frozen=True)
class SecretRecord:
    """
    Stored form of a credential: the identifier plus the encrypted secret.

    ``payload`` is always ciphertext produced by CryptoService.encrypt.
    """

    identifier: str
    payload: bytes

    def to_blob(self) -> bytes:
        """Serialize to a single JSON blob with the payload base64-encoded."""
        doc = {
            "identifier": self.identifier,
            "payload": base64.b64encode(self.payload).decode("ascii"),
        }
        return json.dumps(doc, ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_blob(cls, blob: bytes) -> "SecretRecord":
        try:
            doc = json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"stored record is not valid JSON: {e}") from e

        if not isinstance(doc, dict):
            raise SerializationError("stored record is not a JSON object")
        identifier = doc.get("identifier")
        payload = doc.get("payload")
        if not isinstance(identifier, str) or not isinstance(payload, str):
            raise SerializationError("stored record is missing identifier or payload")

        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SerializationError(f"stored payload is not valid base64: {e}") from e
        return cls(identifier=identifier, payload=raw)


@dataclass(frozen=True)
class Credential:
    """Decrypted credential returned by CredentialService.load_credential."""

    identifier: str
    secret: str

    def __repr__(self) -> str:
        return f"Credential(identifier={self.identifier!r}, secret='***')"
