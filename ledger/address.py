"""
ledger/address.py

Ledger addresses and the metadata record address derivation.

Addresses are ``solders`` public keys. Record accounts for the token metadata
program are program-derived addresses seeded with ``["metadata", program,
mint]``.
"""

from __future__ import annotations

from solders.pubkey import Pubkey

Address = Pubkey

ADDRESS_LENGTH = 32
METADATA_SEED = b"metadata"

SYSTEM_PROGRAM_ID = Pubkey.default()
TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")


class InvalidAddressError(ValueError):
    """
    Raised when a string or byte sequence is not a 32-byte ledger address.
    """


def address_from_bytes(raw: bytes) -> Address:
    if len(raw) != ADDRESS_LENGTH:
        raise InvalidAddressError(f"Address must be {ADDRESS_LENGTH} bytes, got {len(raw)}.")
    return Pubkey(bytes(raw))


def parse_address(value: str) -> Address:
    """
    Parse a base58 address, ignoring surrounding whitespace.
    """

    candidate = value.strip()
    if not candidate:
        raise InvalidAddressError("Address is empty.")
    try:
        return Pubkey.from_string(candidate)
    except ValueError as exc:
        raise InvalidAddressError(f"Address '{candidate}' is not a valid address: {exc}") from exc


def short_address(address: Address, length: int = 8) -> str:
    return f"{str(address)[:length]}..."


def derive_metadata_address(
    mint: Address,
    program_id: Address = TOKEN_METADATA_PROGRAM_ID,
) -> Address:
    """
    Return the metadata record account for ``mint``.
    """

    address, _ = Pubkey.find_program_address(
        [METADATA_SEED, bytes(program_id), bytes(mint)],
        program_id,
    )
    return address
