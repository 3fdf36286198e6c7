"""
StrongPW - Command Line Interface

Usage:
    python -m strongpw.cli keygen                         # ./public.key + ./private.key
    python -m strongpw.cli keygen --public-key pub.key --private-key priv.key --force
    python -m strongpw.cli encode "secret"                # SPEncrypted ...
    python -m strongpw.cli encode "secret" --no-prefix    # bare base64
    python -m strongpw.cli decode "SPEncrypted ..." --optional
    python -m strongpw.cli prefixes

encode/decode read their keys from --key-dir, or from the locations in the
SPE_PUBKEY_* / SPE_PRIVKEY_* environment variables.
"""

import argparse
import logging
import sys

from . import __version__
from .crypto import RsaCipher
from .encoder import StrongPasswordEncoder
from .errors import StrongPasswordError
from .keys import KeyConfig, export_key_pair

logger = logging.getLogger(__name__)


def cmd_keygen(args) -> int:
    key_pair = RsaCipher().generate_key_pair()
    export_key_pair(key_pair, args.public_key, args.private_key, overwrite=args.force)
    print(f"Public key written to {args.public_key}")
    print(f"Private key written to {args.private_key}")
    return 0


def _encoder(args) -> StrongPasswordEncoder:
    config = KeyConfig.in_directory(args.key_dir) if args.key_dir else KeyConfig.from_env()
    return StrongPasswordEncoder.create(config)


def cmd_encode(args) -> int:
    print(_encoder(args).encode(args.password, include_prefix=not args.no_prefix))
    return 0


def cmd_decode(args) -> int:
    print(_encoder(args).decode(args.value, args.mode))
    return 0


def cmd_prefixes(args) -> int:
    for prefix in StrongPasswordEncoder().get_prefixes():
        print(repr(prefix))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strongpw",
        description="RSA password encoder with legacy 'Encrypted ' support",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"strongpw {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("keygen", help="Generate a key pair and write it to disk")
    p.add_argument("--public-key", default="./public.key", help="default: ./public.key")
    p.add_argument("--private-key", default="./private.key", help="default: ./private.key")
    p.add_argument("--force", action="store_true", help="Overwrite existing key files")
    p.set_defaults(func=cmd_keygen)

    p = sub.add_parser("encode", help="Encrypt a password")
    p.add_argument("password")
    p.add_argument("--no-prefix", action="store_true", help="Print bare base64 ciphertext")
    p.add_argument("--key-dir", help="Directory holding public.key and private.key")
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("decode", help="Decrypt a password")
    p.add_argument("value")
    p.add_argument("--key-dir", help="Directory holding public.key and private.key")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--strict", dest="mode", action="store_const", const=False,
                      help="Value is bare base64 ciphertext")
    mode.add_argument("--optional", dest="mode", action="store_const", const=True,
                      help="Dispatch on the prefix, pass plaintext through")
    p.set_defaults(func=cmd_decode, mode=None)

    p = sub.add_parser("prefixes", help="List recognized prefixes")
    p.set_defaults(func=cmd_prefixes)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (StrongPasswordError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
