"""
Exceptions for the credstore core
All of them derive from CredStoreError so callers have one general error catcher.

These are carried inside Outcome values at the public boundary; nothing in the
key manager or crypto service lets them escape as raised exceptions.
"""


class CredStoreError(Exception):
    # general container for errors
    pass


class NotFoundError(CredStoreError):
    # raised when a tag has no entry in the store
    pass


class StoreRejectedError(CredStoreError):
    # raised when the secure store refuses an operation
    # (bad attributes, duplicate insert, backend/permission failure)

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class CryptoFailureError(CredStoreError):
    # raised when key generation, encryption or decryption fails
    # (payload over the ceiling, key mismatch, malformed ciphertext)
    pass


class SerializationError(CredStoreError):
    # raised when a stored blob cannot be parsed into a record
    pass


class ConfigurationError(CredStoreError):
    # raised on invalid environment configuration
    pass
