"""
Unit tests for core models: attributes, Outcome and record serialization.
"""

import base64
import json

import pytest

from credstore.core.exceptions import CredStoreError, NotFoundError, SerializationError, StoreRejectedError
from credstore.core.models import (
    Credential,
    ItemAttributes,
    ItemClass,
    KeyKind,
    KeyPair,
    Outcome,
    SecretRecord,
    StoreStatus,
)


# ==============================================================================
# Tests: ItemAttributes
# ==============================================================================

def test_secret_attributes_have_no_key_kind():
    attrs = ItemAttributes.secret("userDetails")
    assert attrs.item_class is ItemClass.GENERIC_SECRET
    assert attrs.key_kind is None
    assert attrs.is_valid()


def test_key_attributes_require_kind():
    assert ItemAttributes.key("k", KeyKind.SYMMETRIC).is_valid()
    assert not ItemAttributes(ItemClass.KEY, "k").is_valid()


def test_secret_attributes_reject_kind():
    assert not ItemAttributes(ItemClass.GENERIC_SECRET, "k", KeyKind.SYMMETRIC).is_valid()


def test_empty_tag_is_invalid():
    assert not ItemAttributes.key("", KeyKind.SYMMETRIC).is_valid()
    assert not ItemAttributes.secret("").is_valid()


def test_private_and_public_namespaces_differ():
    """Same tag, different role: different store keys."""
    private = ItemAttributes.key("pair", KeyKind.ASYMMETRIC_PRIVATE)
    public = ItemAttributes.key("pair", KeyKind.ASYMMETRIC_PUBLIC)
    assert private != public
    assert len({private, public}) == 2


# ==============================================================================
# Tests: Outcome
# ==============================================================================

def test_outcome_success_is_truthy():
    out = Outcome.success(b"data")
    assert out
    assert out.ok
    assert out.unwrap() == b"data"


def test_outcome_failure_is_falsy_and_keeps_cause():
    err = StoreRejectedError("nope", StoreStatus.DUPLICATE)
    out = Outcome.failure(err)
    assert not out
    assert out.error is err
    assert out.error.status is StoreStatus.DUPLICATE
    with pytest.raises(StoreRejectedError, match="nope"):
        out.unwrap()


def test_exception_hierarchy_has_single_root():
    assert issubclass(NotFoundError, CredStoreError)
    assert issubclass(SerializationError, CredStoreError)


# ==============================================================================
# Tests: SecretRecord
# ==============================================================================

def test_record_blob_layout():
    record = SecretRecord(identifier="alice", payload=b"\x00\xffcipher")
    doc = json.loads(record.to_blob().decode("utf-8"))
    assert doc == {"identifier": "alice", "payload": base64.b64encode(b"\x00\xffcipher").decode("ascii")}
    assert SecretRecord.from_blob(record.to_blob()) == record


@pytest.mark.parametrize(
    "blob",
    [
        b"not json at all",
        b"\xff\xfe",
        b"[1, 2, 3]",
        b'{"identifier": "alice"}',
        b'{"identifier": 5, "payload": "AAAA"}',
        b'{"identifier": "alice", "payload": "***not base64***"}',
    ],
)
def test_record_from_bad_blob_raises_serialization_error(blob):
    with pytest.raises(SerializationError):
        SecretRecord.from_blob(blob)


# ==============================================================================
# Tests: reprs never leak secrets
# ==============================================================================

def test_credential_repr_masks_secret():
    cred = Credential(identifier="alice", secret="s3cr3t")
    assert "s3cr3t" not in repr(cred)
    assert "alice" in repr(cred)


def test_key_pair_repr_shows_only_tags(rsa_pair):
    private_key, public_key = rsa_pair
    pair = KeyPair(private_key, public_key, "priv", "pub")
    text = repr(pair)
    assert "priv" in text and "pub" in text
    assert "RSAPrivateKey" not in text
