"""
StrongPW - Legacy Obfuscation

The scheme that predates RSA encryption, kept so that secrets stored with it
can still be read back.

How it works:
    1. UTF-8 bytes of the password -> signed big-endian integer
    2. XOR with a fixed numeric seed
    3. Render as lowercase hexadecimal, tag with "Encrypted "

This is obfuscation, not encryption: anyone who knows the seed can reverse
it. New secrets should always be written with the RSA encoder.
"""

import logging
import os
import re
from typing import Optional

from .variables import contains_unresolved_variables

logger = logging.getLogger(__name__)


PASSWORD_ENCRYPTED_PREFIX = "Encrypted "
DEFAULT_SEED = "0933910847463829827159347601486730416058"
SEED_ENV_VAR = "SPE_LEGACY_SEED"
RADIX = 16

# Optional sign and hex digits only: no "0x", no "_", no whitespace
HEX_NUMBER = re.compile(r"[+-]?[0-9a-fA-F]+")


def _java_bit_length(value: int) -> int:
    # Two's complement width without the sign bit.
    return value.bit_length() if value >= 0 else (~value).bit_length()


def _to_signed_bytes(value: int) -> bytes:
    """Minimal two's complement big-endian encoding, sign bit included."""
    length = _java_bit_length(value) // 8 + 1
    return value.to_bytes(length, 'big', signed=True)


class LegacyPasswordEncoder:
    """
    Encoder for the legacy "Encrypted " format.

    Usage:
        legacy = LegacyPasswordEncoder()
        token = legacy.encrypt_password("secret")
        legacy.decrypt_password_optionally_encrypted("Encrypted " + token)
    """

    def __init__(self, seed: Optional[str] = None):
        self.seed = seed or DEFAULT_SEED
        self._seed_value = int(self.seed)

    @classmethod
    def from_env(cls) -> "LegacyPasswordEncoder":
        """Use the seed from SPE_LEGACY_SEED when it is set."""
        return cls(os.environ.get(SEED_ENV_VAR) or None)

    def encrypt_password(self, password: Optional[str]) -> str:
        """Obfuscate a password (no prefix). Empty input gives ""."""
        if not password:
            return ""
        value = int.from_bytes(password.encode('utf-8'), 'big', signed=True)
        return format(value ^ self._seed_value, 'x')

    def decrypt_password(self, encrypted: Optional[str]) -> str:
        """
        Reverse encrypt_password() on a value without prefix.

        Returns "" for empty input and for anything that is not a hex
        number, mirroring how consumers of the old format behave.
        """
        if not encrypted:
            return ""
        if not HEX_NUMBER.fullmatch(encrypted):
            logger.debug("Legacy value is not a hex number")
            return ""
        value = int(encrypted, RADIX)
        return _to_signed_bytes(value ^ self._seed_value).decode('utf-8', errors='replace')

    def decrypt_password_optionally_encrypted(self, password: Optional[str]) -> Optional[str]:
        """Decrypt if the value carries the legacy prefix, otherwise return it unchanged."""
        if password and password.startswith(PASSWORD_ENCRYPTED_PREFIX):
            return self.decrypt_password(password[len(PASSWORD_ENCRYPTED_PREFIX):])
        return password

    def encrypt_password_if_not_using_variables(self, password: str) -> str:
        """Prefix and obfuscate, unless the password still holds variable references."""
        if contains_unresolved_variables(password):
            return password
        return PASSWORD_ENCRYPTED_PREFIX + self.encrypt_password(password)
