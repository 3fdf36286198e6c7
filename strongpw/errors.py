"""
StrongPW - Error Types

Every failure the encoder can surface derives from StrongPasswordError, so
callers can catch the whole family with one clause.
"""


class StrongPasswordError(Exception):
    """Base class for all encoder errors."""


class KeyLoadFailure(StrongPasswordError):
    """A key file is missing, unreadable or empty."""


class EncryptionFailure(StrongPasswordError):
    """Plaintext is too long for one RSA block, or the public key is invalid."""


class DecryptionFailure(StrongPasswordError):
    """Ciphertext is malformed, was made with another key, or fails padding."""


class NotInitialized(StrongPasswordError):
    """The encoder was used before its keys were loaded."""
