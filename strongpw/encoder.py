"""
StrongPW - Password Encoder

Turns passwords into "SPEncrypted <base64 RSA ciphertext>" and back, while
still reading values written by the legacy "Encrypted <hex>" obfuscation.

Formats a stored password can take:
    "secret"                    -> plaintext (no prefix)
    "Encrypted 6a7573..."       -> legacy obfuscation
    "SPEncrypted MIIB..."       -> RSA encrypted by this encoder

Lifecycle:
    encoder = StrongPasswordEncoder(KeyConfig.from_env())
    encoder.init()          # loads both keys once, fails fast
    encoder.encode("secret")
    encoder.decode(stored, True)

Every encode/decode call only reads the keys loaded by init(), so a single
encoder can be shared by any number of threads.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from . import legacy
from .crypto import AsymmetricCipher, RsaCipher
from .errors import KeyLoadFailure, NotInitialized
from .keys import FileKeyProvider, KeyConfig, KeyRole
from .legacy import LegacyPasswordEncoder
from .variables import contains_unresolved_variables

logger = logging.getLogger(__name__)


PASSWORD_ENCRYPTED_PREFIX = "SPEncrypted "


class PasswordEncoder(ABC):
    """The contract a host system needs from a two-way password encoder."""

    @abstractmethod
    def init(self) -> None:
        ...

    @abstractmethod
    def encode(self, raw_password: str, include_prefix: bool = True) -> str:
        ...

    @abstractmethod
    def decode(self, encoded_password: Optional[str],
               optionally_encrypted: Optional[bool] = None) -> Optional[str]:
        ...

    @abstractmethod
    def get_prefixes(self) -> List[str]:
        ...


class StrongPasswordEncoder(PasswordEncoder):
    """
    RSA based password encoder with a fallback to the legacy format.

    Collaborators are injectable; by default keys come from files described
    by a KeyConfig, the legacy format uses the seed from SPE_LEGACY_SEED
    (or its standard seed), and variable
    references are detected with strongpw.variables.
    """

    def __init__(
        self,
        config: Optional[KeyConfig] = None,
        key_provider=None,
        cipher: Optional[AsymmetricCipher] = None,
        legacy_decoder: Optional[LegacyPasswordEncoder] = None,
        variable_detector: Optional[Callable[[str], bool]] = None,
    ):
        self.config = config or KeyConfig()
        self.key_provider = key_provider or FileKeyProvider(self.config)
        self.cipher = cipher or RsaCipher()
        self.legacy_decoder = legacy_decoder or LegacyPasswordEncoder.from_env()
        self.variable_detector = variable_detector or contains_unresolved_variables

        # Only present once init() succeeded
        self._public_key: Optional[str] = None
        self._private_key: Optional[str] = None
        self._init_error: Optional[KeyLoadFailure] = None

    @classmethod
    def create(cls, config: Optional[KeyConfig] = None, **kwargs) -> "StrongPasswordEncoder":
        """Construct and initialize in one step."""
        encoder = cls(config, **kwargs)
        encoder.init()
        return encoder

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self._public_key is not None and self._private_key is not None

    def init(self) -> None:
        """
        Load the public and private keys.

        Keys are read exactly once. Calling init() again on a ready encoder
        does nothing; calling it after a failed attempt raises the same
        KeyLoadFailure again without touching the key files.

        The keys must also form a pair: with PKCS#1 v1.5 implicit rejection a
        mismatched private key would otherwise decrypt to random bytes
        instead of failing.

        Raises:
            KeyLoadFailure: Either key could not be read, is not a valid key,
                or the two keys do not belong together
        """
        if self.is_ready:
            return
        if self._init_error is not None:
            raise KeyLoadFailure("Key loading already failed for this encoder.") from self._init_error

        try:
            public_key = self.key_provider.load_key(KeyRole.PUBLIC)
            private_key = self.key_provider.load_key(KeyRole.PRIVATE)
        except KeyLoadFailure as e:
            self._init_error = e
            raise
        except Exception as e:
            self._init_error = KeyLoadFailure(f"Cannot load keys: {e}")
            raise self._init_error from e

        try:
            self.cipher.check_key_pair(public_key, private_key)
        except Exception as e:
            self._init_error = KeyLoadFailure(f"Unusable key pair: {e}")
            raise self._init_error from e

        self._public_key = public_key
        self._private_key = private_key

    def _require_ready(self) -> None:
        if not self.is_ready:
            raise NotInitialized("Call init() before encoding or decoding passwords.")

    # -------------------------------------------------------------------------
    # Encode / Decode
    # -------------------------------------------------------------------------

    def encode(self, raw_password: str, include_prefix: bool = True) -> str:
        """
        Encrypt a password.

        Args:
            raw_password: Plaintext password
            include_prefix: Tag the result with "SPEncrypted ". When True,
                a password that still holds variable references such as
                ${DB_PASS} is returned unchanged.

        Returns:
            "SPEncrypted <base64>", bare base64, or the untouched input
        """
        self._require_ready()
        if not include_prefix:
            return self._encrypt(raw_password)

        if self.variable_detector(raw_password):
            logger.debug("Password holds variable references, left unencrypted")
            return raw_password
        return PASSWORD_ENCRYPTED_PREFIX + self._encrypt(raw_password)

    def decode(self, encoded_password: Optional[str],
               optionally_encrypted: Optional[bool] = None) -> Optional[str]:
        """
        Decrypt a password.

        Args:
            encoded_password: Stored value, with or without prefix
            optionally_encrypted:
                True  -> dispatch on the prefix: strong values are decrypted
                         (errors propagate), legacy values go to the legacy
                         decoder, anything else is returned as is.
                False -> the value is bare base64 ciphertext.
                omitted -> legacy-compatible mode, see _decode_with_fallback().

        Raises:
            DecryptionFailure: In the strict modes, for corrupted ciphertext
        """
        self._require_ready()
        if optionally_encrypted is None:
            return self._decode_with_fallback(encoded_password)

        if encoded_password is None:
            return None

        if not optionally_encrypted:
            return self._decrypt(encoded_password)

        if encoded_password.startswith(PASSWORD_ENCRYPTED_PREFIX):
            return self._decrypt(encoded_password[len(PASSWORD_ENCRYPTED_PREFIX):])
        if encoded_password.startswith(legacy.PASSWORD_ENCRYPTED_PREFIX):
            logger.debug("Legacy prefix found, delegating to the legacy decoder")
            return self.legacy_decoder.decrypt_password_optionally_encrypted(encoded_password)
        return encoded_password

    def _decode_with_fallback(self, encoded_password: Optional[str]) -> str:
        """
        Strip either prefix, try RSA decryption, and on failure hand the
        value to the legacy decoder.

        A strongly prefixed value that fails to decrypt is NOT an error here:
        it silently becomes a legacy decode attempt, which may itself return
        garbage. Callers that need a hard failure must pass
        optionally_encrypted=True. Any error from the cipher triggers the
        fallback, not only DecryptionFailure.
        """
        fallback_value = encoded_password
        candidate = encoded_password
        if encoded_password is not None:
            if encoded_password.startswith(PASSWORD_ENCRYPTED_PREFIX):
                candidate = encoded_password[len(PASSWORD_ENCRYPTED_PREFIX):]
            elif encoded_password.startswith(legacy.PASSWORD_ENCRYPTED_PREFIX):
                candidate = encoded_password[len(legacy.PASSWORD_ENCRYPTED_PREFIX):]
                fallback_value = candidate

        try:
            return self._decrypt(candidate)
        except Exception as e:
            logger.warning("RSA decryption failed (%s: %s), falling back to the legacy decoder",
                           type(e).__name__, e)
            return self.legacy_decoder.decrypt_password(fallback_value)

    def get_prefixes(self) -> List[str]:
        """Recognized prefixes, strong first. Usable before init()."""
        return [PASSWORD_ENCRYPTED_PREFIX, legacy.PASSWORD_ENCRYPTED_PREFIX]

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _encrypt(self, password: str) -> str:
        return self.cipher.encrypt(password, self._public_key)

    def _decrypt(self, encrypted_password: str) -> str:
        return self.cipher.decrypt(encrypted_password, self._private_key)
