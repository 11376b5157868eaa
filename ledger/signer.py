"""
ledger/signer.py

Signer abstraction and a keypair-file implementation backed by ``solders``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from solders.keypair import Keypair

from ledger.address import ADDRESS_LENGTH, Address

KEYPAIR_LENGTH = 64


class KeypairLoadError(ValueError):
    """
    Raised when a keypair file is missing, malformed, or internally inconsistent.
    """


class Signer(Protocol):
    """
    Identity that can authorize ledger transactions.
    """

    @property
    def public_key(self) -> Address:
        """Address the signatures verify against."""

    def sign(self, message: bytes) -> bytes:
        """Return a 64-byte signature over ``message``."""


class KeypairSigner:
    """
    Signs with an in-memory Ed25519 keypair.
    """

    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair

    @classmethod
    def generate(cls) -> "KeypairSigner":
        return cls(Keypair())

    @classmethod
    def from_secret_key(cls, secret_key: bytes) -> "KeypairSigner":
        """
        Build a signer from the 64-byte ``seed || public key`` layout.
        """

        if len(secret_key) != KEYPAIR_LENGTH:
            raise KeypairLoadError(
                f"Secret key must be {KEYPAIR_LENGTH} bytes, got {len(secret_key)}."
            )
        keypair = Keypair.from_seed(secret_key[:ADDRESS_LENGTH])
        if bytes(keypair.pubkey()) != secret_key[ADDRESS_LENGTH:]:
            raise KeypairLoadError("Keypair public key does not match its private seed.")
        return cls(keypair)

    @property
    def public_key(self) -> Address:
        return self._keypair.pubkey()

    def sign(self, message: bytes) -> bytes:
        return bytes(self._keypair.sign_message(message))

    def secret_key(self) -> bytes:
        return self._keypair.to_bytes()


def load_keypair_signer(path: str | Path) -> KeypairSigner:
    """
    Load a keypair file holding a JSON array of 64 integers.
    """

    keypair_path = Path(path)
    try:
        payload = json.loads(keypair_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise KeypairLoadError(f"Keypair file not found: {keypair_path}") from exc
    except ValueError as exc:
        raise KeypairLoadError(f"Keypair file is not valid JSON: {keypair_path}") from exc

    if not isinstance(payload, list) or not all(
        isinstance(item, int) and 0 <= item <= 255 for item in payload
    ):
        raise KeypairLoadError("Keypair file must contain a JSON array of byte values.")
    return KeypairSigner.from_secret_key(bytes(payload))
