"""
StrongPW - RSA Password Encoder

Encrypts stored passwords with RSA so that only the holder of the private key
can read them back, while still decoding values written with the older
"Encrypted " obfuscation.

Components:
- crypto.py: RSA cipher and key pair generation
- encoder.py: Prefix protocol ("SPEncrypted " / "Encrypted ") and fallbacks
- legacy.py: The legacy XOR obfuscation
- variables.py: ${VAR} / %%VAR%% detection
- keys.py: Key file locations, loading and writing
- cli.py: Command-line interface (uses built-in argparse)

Usage:
    python -m strongpw.cli keygen                   # Create public.key/private.key
    python -m strongpw.cli encode "secret"          # SPEncrypted ...
    python -m strongpw.cli decode "SPEncrypted ..." --optional
"""

from .crypto import AsymmetricCipher, Base64KeyPair, RsaCipher
from .encoder import PASSWORD_ENCRYPTED_PREFIX, PasswordEncoder, StrongPasswordEncoder
from .errors import (
    DecryptionFailure,
    EncryptionFailure,
    KeyLoadFailure,
    NotInitialized,
    StrongPasswordError,
)
from .keys import FileKeyProvider, KeyConfig, KeyRole

__version__ = "0.1.0"

__all__ = [
    "AsymmetricCipher",
    "Base64KeyPair",
    "RsaCipher",
    "PASSWORD_ENCRYPTED_PREFIX",
    "PasswordEncoder",
    "StrongPasswordEncoder",
    "StrongPasswordError",
    "KeyLoadFailure",
    "EncryptionFailure",
    "DecryptionFailure",
    "NotInitialized",
    "FileKeyProvider",
    "KeyConfig",
    "KeyRole",
]
