"""
StrongPW - Key Files

Reading and writing the two key files the encoder depends on.

File layout:
    public.key  -> Base64 of the DER X.509 public key, nothing else
    private.key -> Base64 of the DER PKCS#8 private key, nothing else

Locations come from a KeyConfig. Defaults point at ./public.key and
./private.key; KeyConfig.from_env() applies overrides from the environment.
"""

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .crypto import Base64KeyPair
from .errors import KeyLoadFailure

logger = logging.getLogger(__name__)


class KeyRole(enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


# Environment variables read by KeyConfig.from_env()
PUBLIC_KEY_FILENAME_ENV = "SPE_PUBKEY_FILENAME"
PUBLIC_KEY_PATH_ENV = "SPE_PUBKEY_PATH"
PRIVATE_KEY_FILENAME_ENV = "SPE_PRIVKEY_FILENAME"
PRIVATE_KEY_PATH_ENV = "SPE_PRIVKEY_PATH"

DEFAULT_PUBLIC_KEY_FILENAME = "public.key"
DEFAULT_PRIVATE_KEY_FILENAME = "private.key"
DEFAULT_KEY_PATH = "./"


@dataclass(frozen=True)
class KeyConfig:
    """Where the key files live: one (directory, file name) pair per role."""

    public_key_filename: str = DEFAULT_PUBLIC_KEY_FILENAME
    public_key_path: str = DEFAULT_KEY_PATH
    private_key_filename: str = DEFAULT_PRIVATE_KEY_FILENAME
    private_key_path: str = DEFAULT_KEY_PATH

    @classmethod
    def from_env(cls) -> "KeyConfig":
        env = os.environ
        return cls(
            public_key_filename=env.get(PUBLIC_KEY_FILENAME_ENV, DEFAULT_PUBLIC_KEY_FILENAME),
            public_key_path=env.get(PUBLIC_KEY_PATH_ENV, DEFAULT_KEY_PATH),
            private_key_filename=env.get(PRIVATE_KEY_FILENAME_ENV, DEFAULT_PRIVATE_KEY_FILENAME),
            private_key_path=env.get(PRIVATE_KEY_PATH_ENV, DEFAULT_KEY_PATH),
        )

    @classmethod
    def in_directory(cls, directory: Union[str, Path]) -> "KeyConfig":
        """Both keys, with default file names, in one directory."""
        return cls(public_key_path=str(directory), private_key_path=str(directory))

    def location(self, role: KeyRole) -> Path:
        if role is KeyRole.PUBLIC:
            return Path(self.public_key_path) / self.public_key_filename
        return Path(self.private_key_path) / self.private_key_filename


class FileKeyProvider:
    """Loads Base64 key material from the files named by a KeyConfig."""

    def __init__(self, config: KeyConfig = None):
        self.config = config or KeyConfig()

    def load_key(self, role: KeyRole) -> str:
        """
        Read one key file.

        The file content is the Base64 key itself; surrounding whitespace
        (e.g. a trailing newline added by an editor) is dropped.

        Raises:
            KeyLoadFailure: File missing, unreadable, or empty
        """
        path = self.config.location(role)
        try:
            key = path.read_text(encoding='utf-8').strip()
        except (OSError, UnicodeDecodeError) as e:
            raise KeyLoadFailure(f"Cannot load {role.value} key from {path}.") from e

        if not key:
            raise KeyLoadFailure(f"The {role.value} key file {path} is empty.")

        logger.info("Loaded %s key from %s", role.value, path)
        return key


def write_key_file(path: Union[str, Path], key: str, overwrite: bool = False,
                   private: bool = False) -> Path:
    """
    Write one key to disk, with no framing.

    Args:
        path: Target file
        key: Base64 key string
        overwrite: Replace an existing file instead of failing
        private: Restrict the file to its owner (0600)

    Raises:
        FileExistsError: File exists and overwrite is False
    """
    path = Path(path)
    mode = 'w' if overwrite else 'x'
    with open(path, mode, encoding='utf-8') as f:
        f.write(key)
    if private:
        # No-op on Windows beyond the read-only bit
        os.chmod(path, 0o600)
    return path


def export_key_pair(key_pair: Base64KeyPair, public_path: Union[str, Path],
                    private_path: Union[str, Path], overwrite: bool = False) -> None:
    """Write both keys of a freshly generated pair."""
    if not overwrite:
        for p in (public_path, private_path):
            if Path(p).exists():
                raise FileExistsError(f"{p} already exists")

    write_key_file(public_path, key_pair.public_key, overwrite=overwrite)
    write_key_file(private_path, key_pair.private_key, overwrite=overwrite, private=True)
    logger.info("Wrote key pair to %s and %s", public_path, private_path)
