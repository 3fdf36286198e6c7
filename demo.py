"""
StrongPW - Guided Walkthrough (single run, no user input)

Run: python demo.py

This script shows what an operator would do with the command-line tool and
what the encoder does under the hood. It walks through:
 - Key pair generation (strongpw keygen)
 - Loading the keys once (init)
 - Encoding a password, and skipping one that holds ${VARIABLES}
 - Decoding strong, legacy and plain values
 - The 245-byte limit of one RSA block
 - The legacy-compatible fallback and why it is fragile
 - Using the encoder before init()

All steps print the CLI-style output plus a short "behind the scenes" note.
"""

import os
import tempfile
from textwrap import indent

from strongpw.crypto import RsaCipher
from strongpw.encoder import PASSWORD_ENCRYPTED_PREFIX, StrongPasswordEncoder
from strongpw.errors import DecryptionFailure, EncryptionFailure, NotInitialized
from strongpw.keys import KeyConfig, export_key_pair
from strongpw.legacy import PASSWORD_ENCRYPTED_PREFIX as LEGACY_PREFIX
from strongpw.legacy import LegacyPasswordEncoder


LINE = "=" * 70


def step(title: str, command: str, code_path: str):
    print(f"\n{LINE}\n{title}  (command: {command}, code: {code_path})\n{LINE}")


def explain(title: str, body: str):
    print(f"\n[Behind the scenes] {title}")
    print(indent(body.strip(), "  "))


def short(value: str, width: int = 48) -> str:
    return value if len(value) <= width else value[:width] + "..."


def main():
    key_dir = tempfile.mkdtemp(prefix="strongpw-demo-")
    public_path = os.path.join(key_dir, "public.key")
    private_path = os.path.join(key_dir, "private.key")

    # 1) Key generation
    step("Generate a key pair", "strongpw keygen", "crypto.RsaCipher.generate_key_pair")
    pair = RsaCipher().generate_key_pair()
    export_key_pair(pair, public_path, private_path)
    print(f"Public key written to {public_path}")
    print(f"Private key written to {private_path}")
    print(f"repr(): {pair!r}")
    explain("Key files", """
        2048-bit RSA, e=65537, drawn from the OS random source.
        public.key holds Base64(DER X.509), private.key holds Base64(DER PKCS#8).
        No headers, no newline. The private key file is chmod 0600.
        repr() hides the keys so a key pair can never leak through a log line.
    """)

    # 2) Init
    step("Load the keys", "(on startup)", "encoder.StrongPasswordEncoder.init")
    encoder = StrongPasswordEncoder(KeyConfig.in_directory(key_dir))
    encoder.init()
    print(f"Ready: {encoder.is_ready}")
    explain("Fail fast", """
        Both files are read exactly once. A missing file raises KeyLoadFailure
        right here, not on the first encode, and the encoder stays unusable.
    """)

    # 3) Encode
    step("Encode passwords", "strongpw encode", "encoder.StrongPasswordEncoder.encode")
    encoded = encoder.encode("justatestpassword")
    print(f"justatestpassword           -> {short(encoded)}")
    print(f"justatestpassword${{DB_ENV}} -> {encoder.encode('justatestpassword${DB_ENV}')}")
    print(f"no prefix                   -> {short(encoder.encode('justatestpassword', False))}")
    explain("Variable skip", """
        A value with ${NAME} or %%NAME%% is only known at runtime, so it is
        stored as is. Encrypting it would lock the placeholder, not the secret.
    """)

    # 4) Decode dispatch
    step("Decode stored values", "strongpw decode --optional", "encoder.StrongPasswordEncoder.decode")
    legacy_value = LEGACY_PREFIX + LegacyPasswordEncoder().encrypt_password("an-old-password")
    for stored in (encoded, legacy_value, "already-plain"):
        print(f"{short(stored, 36):40} -> {encoder.decode(stored, True)}")
    explain("Prefix dispatch", f"""
        '{PASSWORD_ENCRYPTED_PREFIX}' -> RSA decrypt (errors propagate)
        '{LEGACY_PREFIX}'   -> legacy XOR decoder, RSA keys untouched
        anything else  -> returned unchanged
    """)

    # 5) Block limit
    step("RSA block limit", "strongpw encode <long>", "crypto.RsaCipher.encrypt_bytes")
    try:
        encoder.encode("x" * 246)
    except EncryptionFailure as e:
        print(f"EncryptionFailure: {e}")
    explain("PKCS#1 v1.5", """
        One 2048-bit block carries 256 - 11 = 245 bytes. Longer secrets are
        rejected, never truncated or split across blocks.
    """)

    # 6) Fallback
    step("Legacy-compatible decode", "strongpw decode", "encoder.StrongPasswordEncoder._decode_with_fallback")
    corrupted = PASSWORD_ENCRYPTED_PREFIX + "Zm9vYmFy"
    try:
        encoder.decode(corrupted, True)
    except DecryptionFailure as e:
        print(f"decode(corrupted, True) -> DecryptionFailure: {e}")
    print(f"decode(corrupted)       -> {encoder.decode(corrupted)!r}")
    explain("Fragile on purpose", """
        Without the optionally_encrypted flag, a failed RSA decrypt is not an
        error: the value is handed to the legacy decoder, which returns "" or
        garbage. A warning is logged. Use decode(value, True) for hard failures.
    """)

    # 7) Misuse
    step("Encode before init()", "(programming error)", "encoder.StrongPasswordEncoder._require_ready")
    try:
        StrongPasswordEncoder(KeyConfig.in_directory(key_dir)).encode("secret")
    except NotInitialized as e:
        print(f"NotInitialized: {e}")

    # Cleanup
    os.unlink(public_path)
    os.unlink(private_path)
    os.rmdir(key_dir)
    print(f"\n{LINE}\nDone. Temporary keys removed.\n{LINE}")


if __name__ == "__main__":
    main()
