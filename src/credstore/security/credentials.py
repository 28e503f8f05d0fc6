"""Username/secret records protected with RSA and kept in the secure store.

save_credential encrypts the secret with a public key before anything reaches
the store; load_credential reverses it with the private key. A record that is
missing, unparseable or undecryptable loads as None, never as garbage.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Union

from credstore.core.exceptions import SerializationError
from credstore.core.models import Credential, Outcome, SecretRecord
from .crypto import CryptoService
from .key_manager import KeyManager

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIAL_TAG = "credstore.credential"


class CredentialService:
    def __init__(
        self,
        key_manager: KeyManager,
        crypto: Optional[CryptoService] = None,
        tag: str = DEFAULT_CREDENTIAL_TAG,
    ):
        self.key_manager = key_manager
        self.crypto = crypto if crypto is not None else CryptoService()
        self.tag = tag

    def save_credential(self, identifier: str, secret: Union[str, bytes], public_key: Any) -> Outcome[None]:
        """
        Encrypt ``secret`` with ``public_key`` and store it with ``identifier``.

        The store is untouched when encryption fails (for example when the
        secret exceeds the key's payload ceiling).
        """
        plaintext = secret.encode("utf-8") if isinstance(secret, str) else secret
        encrypted = self.crypto.encrypt(plaintext, public_key)
        if not encrypted:
            logger.warning("not saving credential for %r: %s", identifier, encrypted.error)
            return Outcome.failure(encrypted.error)

        record = SecretRecord(identifier=identifier, payload=encrypted.value)
        return self.key_manager.save_secret(self.tag, record.to_blob())

    def load_credential(self, private_key: Any) -> Optional[Credential]:
        blob = self.key_manager.load_secret(self.tag)
        if blob is None:
            return None

        try:
            record = SecretRecord.from_blob(blob)
        except SerializationError as e:
            logger.warning("stored credential under %r is unreadable: %s", self.tag, e)
            return None

        decrypted = self.crypto.decrypt(record.payload, private_key)
        if not decrypted:
            logger.warning("could not decrypt credential for %r: %s", record.identifier, decrypted.error)
            return None

        plaintext = decrypted.value
        try:
            secret = plaintext.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("decrypted secret for %r is not valid UTF-8", record.identifier)
            return None
        finally:
            del plaintext, decrypted
        return Credential(identifier=record.identifier, secret=secret)

    def delete_credential(self) -> Outcome[None]:
        return self.key_manager.delete_secret(self.tag)
