"""RSA public-key encryption of small payloads.

The padding is fixed: RSA-OAEP with SHA-256 (MGF1-SHA256). Its ceiling is
k - 66 bytes, 190 bytes for a 2048-bit key. OAEP decoding rejects a ciphertext
made for another key, so a mismatched key always fails instead of yielding
bytes.

Payloads above the ceiling are refused; there is no chunking or hybrid mode.
Callers needing larger payloads must layer symmetric encryption themselves.
"""
from __future__ import annotations

import logging
from typing import Any

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from credstore.core.exceptions import CryptoFailureError
from credstore.core.models import Outcome

logger = logging.getLogger(__name__)

SCHEME = "RSA-OAEP-SHA256"
OVERHEAD = 2 * hashes.SHA256.digest_size + 2


def _padding() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


class CryptoService:
    """Stateless encrypt/decrypt; every call depends only on (data, key)."""

    def max_plaintext_size(self, key: Any) -> int:
        """Largest plaintext accepted for this key (0 for non-RSA keys)."""
        if not isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
            return 0
        return max(0, key.key_size // 8 - OVERHEAD)

    def encrypt(self, plaintext: bytes, public_key: Any) -> Outcome[bytes]:
        if not isinstance(public_key, rsa.RSAPublicKey):
            return self._fail("encrypt", "an RSA public key is required")
        if not isinstance(plaintext, (bytes, bytearray)):
            return self._fail("encrypt", "plaintext must be bytes")

        ceiling = self.max_plaintext_size(public_key)
        if len(plaintext) > ceiling:
            return self._fail(
                "encrypt",
                f"plaintext of {len(plaintext)} bytes exceeds the {ceiling}-byte ceiling of {SCHEME}",
            )

        try:
            ciphertext = public_key.encrypt(bytes(plaintext), _padding())
        except ValueError as e:
            return self._fail("encrypt", str(e))
        return Outcome.success(ciphertext)

    def decrypt(self, ciphertext: bytes, private_key: Any) -> Outcome[bytes]:
        if not isinstance(private_key, rsa.RSAPrivateKey):
            return self._fail("decrypt", "an RSA private key is required")
        if not isinstance(ciphertext, (bytes, bytearray)) or not ciphertext:
            return self._fail("decrypt", "ciphertext must be non-empty bytes")
        if len(ciphertext) != private_key.key_size // 8:
            # a ciphertext is always exactly one modulus long
            return self._fail("decrypt", "ciphertext length does not match the key")

        try:
            plaintext = private_key.decrypt(bytes(ciphertext), _padding())
        except ValueError:
            return self._fail("decrypt", "decryption failed (wrong key or malformed ciphertext)")
        return Outcome.success(plaintext)

    def _fail(self, action: str, reason: str) -> Outcome[bytes]:
        logger.warning("%s failed: %s", action, reason)
        return Outcome.failure(CryptoFailureError(f"{action} failed: {reason}"))
