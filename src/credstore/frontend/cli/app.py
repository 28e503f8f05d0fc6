"""Command line demo for credstore.

``credstore demo`` walks through the symmetric key lifecycle and the
credential save/load flow against the configured store; ``credstore backend``
reports whether the active keyring backend looks secure.
"""

from __future__ import annotations

import argparse
import dataclasses
from typing import List, Optional

from credstore.config import BACKENDS, StoreConfig, build_store, load_config, parse_log_level
from credstore.core.exceptions import ConfigurationError
from credstore.core.models import KeyKind
from credstore.security.credentials import CredentialService
from credstore.security.crypto import CryptoService
from credstore.security.key_manager import KeyManager
from credstore.security.keystore import assess_keyring_backend
from .logging_config import configure_logging

DEMO_KEY_TAG = "credstore.demo.key"
DEMO_PRIVATE_TAG = "credstore.demo.privatekey"
DEMO_PUBLIC_TAG = "credstore.demo.publickey"
DEMO_CREDENTIAL_TAG = "credstore.demo.credential"


def _report(label: str, ok: bool) -> bool:
    print(f"{label}: {'ok' if ok else 'FAILED'}")
    return ok


def run_key_demo(manager: KeyManager, tag: str = DEMO_KEY_TAG) -> bool:
    """save -> load -> update -> load -> delete -> load on one symmetric key."""
    first = manager.generate_symmetric_key()
    second = manager.generate_symmetric_key()

    results = [
        _report("save key", bool(manager.save(tag, first))),
        _report("load key", manager.load(tag) == first),
        _report("update key", bool(manager.update(tag, second))),
        _report("load updated key", manager.load(tag) == second),
        _report("delete key", bool(manager.delete(tag))),
        _report("key is gone", manager.load(tag) is None),
    ]
    return all(results)


def run_credential_demo(manager: KeyManager, crypto: CryptoService, identifier: str, secret: str) -> bool:
    """
    Generate a key pair, store a credential with it and read it back.

    Everything is written under the demo tags and removed afterwards, so the
    regular key pair and credential entries are never touched.
    """
    generated = manager.generate_key_pair(private_tag=DEMO_PRIVATE_TAG, public_tag=DEMO_PUBLIC_TAG)
    if not _report("generate key pair", generated.ok):
        return False
    pair = generated.value

    credentials = CredentialService(manager, crypto, tag=DEMO_CREDENTIAL_TAG)
    try:
        if not _report("save credential", bool(credentials.save_credential(identifier, secret, pair.public_key))):
            return False
        private_key = manager.retrieve_private_key(DEMO_PRIVATE_TAG)
        if not _report("retrieve private key", private_key is not None):
            return False
        loaded = credentials.load_credential(private_key)
        if not _report("load credential", loaded is not None and loaded.secret == secret):
            return False
        print(f"loaded credential for {loaded.identifier!r}")
        return True
    finally:
        credentials.delete_credential()
        manager.delete(DEMO_PRIVATE_TAG, KeyKind.ASYMMETRIC_PRIVATE)
        manager.delete(DEMO_PUBLIC_TAG, KeyKind.ASYMMETRIC_PUBLIC)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credstore",
        description="Exercise the credstore key manager and credential store.",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Secure store backend (default: $CREDSTORE_BACKEND or keyring)",
    )
    parser.add_argument(
        "--service",
        default=None,
        help="Keyring service name (default: $CREDSTORE_SERVICE or credstore)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level name (default: $CREDSTORE_LOG_LEVEL or INFO)",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    demo = sub.add_parser("demo", help="Run the key and credential walkthrough")
    demo.add_argument("--identifier", default="exampleUser", help="Identifier to store")
    demo.add_argument("--secret", default="examplePass", help="Secret to encrypt and store")
    sub.add_parser("backend", help="Report whether the keyring backend looks secure")
    return parser


def _resolve_config(args: argparse.Namespace) -> StoreConfig:
    config = load_config()
    overrides = {}
    if args.backend is not None:
        overrides["backend"] = args.backend
    if args.service is not None:
        overrides["service"] = args.service
    if args.log_level is not None:
        overrides["log_level"] = parse_log_level(args.log_level)
    return dataclasses.replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        config = _resolve_config(args)
    except ConfigurationError as e:
        parser.error(str(e))
    configure_logging(config.log_level)

    if args.command == "backend":
        secure, msg = assess_keyring_backend()
        print(msg)
        return 0 if secure else 1

    try:
        store = build_store(config)
    except ConfigurationError as e:
        print(f"error: {e}")
        return 1

    manager = KeyManager(store)
    crypto = CryptoService()
    ok = run_key_demo(manager)
    ok = run_credential_demo(manager, crypto, args.identifier, args.secret) and ok
    return 0 if ok else 1


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
