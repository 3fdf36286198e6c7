"""
StrongPW - Cryptography Module

All asymmetric operations used by the password encoder live here:
- RSA-2048 key pair generation
- Base64 (DER) import/export of keys
- PKCS#1 v1.5 encryption and decryption of short secrets

Key formats:
    Public key  -> DER X.509 SubjectPublicKeyInfo -> Base64
    Private key -> DER PKCS#8 (unencrypted)        -> Base64

Why PKCS#1 v1.5?
    - Ciphertexts must stay readable by every consumer that already stores
      secrets in this format
    - A 2048-bit key carries at most 256 - 11 = 245 bytes per block, which is
      plenty for a password. Longer inputs are rejected, never chunked.

Thread safety:
    cryptography's key objects are immutable and each encrypt/decrypt call
    builds its own operation context, so there is no shared cipher handle to
    lock around. Each RsaCipher keeps a small cache of parsed keys; entries
    are immutable and plain dict reads/writes need no lock.
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import DecryptionFailure, EncryptionFailure

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

KEY_SIZE = 2048              # bits
PUBLIC_EXPONENT = 65537
PKCS1_V15_OVERHEAD = 11      # bytes of padding per block


# =============================================================================
# Key Pair
# =============================================================================

@dataclass(frozen=True)
class Base64KeyPair:
    """
    A (public, private) key pair, both Base64 encoded.

    The keys are hidden from repr() so the pair can travel through log
    statements safely. Use export_text() for an explicit dump.
    """

    public_key: str = field(repr=False)
    private_key: str = field(repr=False)

    @classmethod
    def from_private_key(cls, private_key: rsa.RSAPrivateKey) -> "Base64KeyPair":
        """Build the pair from a cryptography RSA private key."""
        public_der = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        private_der = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cls(
            public_key=base64.b64encode(public_der).decode('ascii'),
            private_key=base64.b64encode(private_der).decode('ascii'),
        )

    def export_text(self) -> str:
        """Textual dump of both keys, for key-provisioning tooling only."""
        return f"Public key:{self.public_key}\nPrivate key:{self.private_key}"


# =============================================================================
# Key Import
# =============================================================================

def load_public_key(base64_public_key: str) -> rsa.RSAPublicKey:
    """
    Decode a public key from its Base64/X.509 form.

    Raises:
        EncryptionFailure: If the string is not a valid RSA public key
    """
    try:
        der = base64.b64decode(base64_public_key.encode('ascii'), validate=True)
        key = serialization.load_der_public_key(der)
    except (ValueError, TypeError, AttributeError, UnsupportedAlgorithm) as e:
        raise EncryptionFailure("Cannot load the public key.") from e

    if not isinstance(key, rsa.RSAPublicKey):
        raise EncryptionFailure("The public key is not an RSA key.")
    return key


def load_private_key(base64_private_key: str) -> rsa.RSAPrivateKey:
    """
    Decode a private key from its Base64/PKCS#8 form.

    Raises:
        DecryptionFailure: If the string is not a valid RSA private key
    """
    try:
        der = base64.b64decode(base64_private_key.encode('ascii'), validate=True)
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, AttributeError, UnsupportedAlgorithm) as e:
        raise DecryptionFailure("Cannot load the private key.") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise DecryptionFailure("The private key is not an RSA key.")
    return key


# =============================================================================
# Ciphers
# =============================================================================

class AsymmetricCipher(ABC):
    """
    A cipher relying on asymmetric keys. Keys are passed as Base64 strings
    on every call; a cipher may cache parsed forms of those keys but owns
    no key material of its own.
    """

    @abstractmethod
    def encrypt_bytes(self, data: bytes, public_key: str) -> bytes:
        """Encrypt raw bytes with a Base64 encoded public key."""

    @abstractmethod
    def decrypt_bytes(self, data: bytes, private_key: str) -> bytes:
        """Decrypt raw bytes with a Base64 encoded private key."""

    @abstractmethod
    def generate_key_pair(self) -> Base64KeyPair:
        """Generate a fresh key pair."""

    def check_key_pair(self, public_key: str, private_key: str) -> None:
        """Raise if the two keys do not form a pair. Ciphers that cannot tell accept any pair."""

    def encrypt(self, text: str, public_key: str) -> str:
        """
        Encrypt a string.

        Args:
            text: Plaintext, encoded as UTF-8 before encryption
            public_key: Base64 encoded public key

        Returns:
            Base64 encoded ciphertext
        """
        ciphertext = self.encrypt_bytes(text.encode('utf-8'), public_key)
        return base64.b64encode(ciphertext).decode('ascii')

    def decrypt(self, text: str, private_key: str) -> str:
        """
        Decrypt a Base64 ciphertext produced by encrypt().

        Raises:
            DecryptionFailure: Bad Base64, bad ciphertext, or non UTF-8 result
        """
        try:
            ciphertext = base64.b64decode(text.encode('ascii'), validate=True)
        except (binascii.Error, ValueError, AttributeError, TypeError) as e:
            raise DecryptionFailure("Ciphertext is not valid Base64.") from e

        plaintext = self.decrypt_bytes(ciphertext, private_key)
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptionFailure("Decrypted data is not valid UTF-8.") from e


class RsaCipher(AsymmetricCipher):
    """
    RSA with PKCS#1 v1.5 padding.

    Usage:
        cipher = RsaCipher()
        pair = cipher.generate_key_pair()
        token = cipher.encrypt("secret", pair.public_key)
        cipher.decrypt(token, pair.private_key)  # -> "secret"
    """

    # Parsed keys kept per cipher instance, dropped with the cipher
    MAX_CACHED_KEYS = 4

    def __init__(self, key_size: int = KEY_SIZE):
        self.key_size = key_size
        self._public_keys = {}
        self._private_keys = {}

    def _cached(self, cache: dict, loader, base64_key: str):
        key = cache.get(base64_key)
        if key is None:
            key = loader(base64_key)
            if len(cache) >= self.MAX_CACHED_KEYS:
                cache.clear()
            cache[base64_key] = key
        return key

    def check_key_pair(self, public_key: str, private_key: str) -> None:
        """
        Raises:
            EncryptionFailure / DecryptionFailure: A key is not valid RSA
            ValueError: The keys do not belong to the same pair
        """
        public = self._cached(self._public_keys, load_public_key, public_key)
        private = self._cached(self._private_keys, load_private_key, private_key)
        if public.public_numbers() != private.public_key().public_numbers():
            raise ValueError("The public key does not match the private key.")

    def encrypt_bytes(self, data: bytes, public_key: str) -> bytes:
        """
        Encrypt one block.

        Raises:
            EncryptionFailure: If data exceeds key_size/8 - 11 bytes or the
                key is invalid
        """
        key = self._cached(self._public_keys, load_public_key, public_key)
        limit = max_plaintext_size(key)
        if len(data) > limit:
            raise EncryptionFailure(
                f"Data is {len(data)} bytes, the limit for this key is {limit} bytes."
            )

        try:
            return key.encrypt(data, padding.PKCS1v15())
        except ValueError as e:
            raise EncryptionFailure("Cannot encrypt data.") from e

    def decrypt_bytes(self, data: bytes, private_key: str) -> bytes:
        """
        Decrypt one block.

        OpenSSL applies implicit rejection to PKCS#1 v1.5: a ciphertext made
        for another key usually decrypts to random bytes instead of failing.
        This method cannot tell those bytes apart from a real plaintext; use
        check_key_pair() to make sure a key pair belongs together.

        Raises:
            DecryptionFailure: Wrong length, bad padding (when the backend
                reports it), or invalid key material
        """
        key = self._cached(self._private_keys, load_private_key, private_key)
        try:
            return key.decrypt(data, padding.PKCS1v15())
        except (ValueError, TypeError) as e:
            raise DecryptionFailure("Cannot decrypt data.") from e

    def generate_key_pair(self) -> Base64KeyPair:
        """
        Generate a fresh RSA key pair.

        The key is drawn from the OS CSPRNG by the cryptography backend;
        there is no way to seed it.
        """
        private_key = rsa.generate_private_key(
            public_exponent=PUBLIC_EXPONENT,
            key_size=self.key_size,
        )
        logger.info("Generated a new %d-bit RSA key pair", self.key_size)
        return Base64KeyPair.from_private_key(private_key)


# =============================================================================
# Helpers
# =============================================================================

def max_plaintext_size(public_key) -> int:
    """
    Largest plaintext, in bytes, one PKCS#1 v1.5 block can carry.

    Accepts either a Base64 string or a loaded RSA public key.
    """
    if isinstance(public_key, str):
        public_key = load_public_key(public_key)
    return public_key.key_size // 8 - PKCS1_V15_OVERHEAD
