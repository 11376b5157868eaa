"""
ledger/codec.py

Binary layout of token metadata records and the update instruction payload.

Record account layout (only the prefix this tool reads):

    offset  size  field
    0       1     account discriminator (skipped)
    1       32    update authority
    33      32    mint (skipped)
    65      4+n   name    (u32 little-endian length, UTF-8, NUL padded)
    ...     4+n   symbol
    ...     4+n   uri

The update instruction encodes the same three strings, so a successful update
decodes back to the submitted values. ``encode_update_instruction`` produces
only the payload bytes; the update authority is attached as the signing
account by ``ledger.transaction.build_update_instruction``.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from ledger.address import ADDRESS_LENGTH, Address, address_from_bytes

METADATA_V1_KEY = 4
UPDATE_METADATA_ACCOUNT_V2 = 15
OPTION_NONE = 0
OPTION_SOME = 1

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200

# Optional DataV2 / UpdateMetadataAccountArgsV2 fields left untouched, in
# declaration order: seller fee basis points (u16), creators, collection,
# uses, update authority, primary sale happened, is mutable.
_UNCHANGED_TRAILER = bytes([0, 0]) + bytes(
    [OPTION_NONE, OPTION_NONE, OPTION_NONE, OPTION_NONE, OPTION_NONE, OPTION_NONE]
)

_LENGTH_PREFIX = struct.Struct("<I")
_AUTHORITY_OFFSET = 1
_STRINGS_OFFSET = _AUTHORITY_OFFSET + ADDRESS_LENGTH + ADDRESS_LENGTH


class MalformedRecordError(ValueError):
    """
    Raised when raw account bytes do not match the record layout.
    """


class InstructionEncodingError(ValueError):
    """
    Raised when a field cannot be encoded into the update instruction.
    """


@dataclass(frozen=True)
class OnChainRecord:
    """
    Decoded snapshot of a record's current on-chain values.
    """

    authority: Address
    name: str
    symbol: str
    uri: str


def encode_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return _LENGTH_PREFIX.pack(len(encoded)) + encoded


def _read_string(raw: bytes, offset: int, field_name: str) -> tuple[str, int]:
    if len(raw) < offset + _LENGTH_PREFIX.size:
        raise MalformedRecordError(
            f"Record too short for {field_name} length at offset {offset} (size={len(raw)})."
        )
    (length,) = _LENGTH_PREFIX.unpack_from(raw, offset)
    start = offset + _LENGTH_PREFIX.size
    end = start + length
    if len(raw) < end:
        raise MalformedRecordError(
            f"Record too short for {field_name}: need {end} bytes, have {len(raw)}."
        )
    try:
        text = raw[start:end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedRecordError(f"{field_name} is not valid UTF-8.") from exc
    return text.rstrip("\x00"), end


def decode_record(raw: bytes) -> OnChainRecord:
    """
    Decode raw record account bytes.

    Raises:
        MalformedRecordError: If the bytes end before any computed offset or a
            string field is not valid UTF-8.
    """

    if len(raw) < _STRINGS_OFFSET:
        raise MalformedRecordError(
            f"Record too short: need at least {_STRINGS_OFFSET} bytes, have {len(raw)}."
        )

    authority = address_from_bytes(raw[_AUTHORITY_OFFSET:_AUTHORITY_OFFSET + ADDRESS_LENGTH])
    name, offset = _read_string(raw, _STRINGS_OFFSET, "name")
    symbol, offset = _read_string(raw, offset, "symbol")
    uri, _ = _read_string(raw, offset, "uri")
    return OnChainRecord(authority=authority, name=name, symbol=symbol, uri=uri)


def validate_field_lengths(name: str, symbol: str, uri: str) -> list[str]:
    """
    Return one message per field that exceeds its on-chain byte limit.
    """

    problems: list[str] = []
    for field_name, value, limit in (
        ("name", name, MAX_NAME_LENGTH),
        ("symbol", symbol, MAX_SYMBOL_LENGTH),
        ("uri", uri, MAX_URI_LENGTH),
    ):
        size = len(value.encode("utf-8"))
        if size > limit:
            problems.append(f"{field_name} is {size} bytes; maximum is {limit}.")
    return problems


def encode_update_instruction(name: str, symbol: str, uri: str) -> bytes:
    """
    Encode an UpdateMetadataAccountV2 payload that only rewrites name/symbol/uri.
    """

    problems = validate_field_lengths(name, symbol, uri)
    if problems:
        raise InstructionEncodingError(" ".join(problems))

    return b"".join(
        (
            bytes([UPDATE_METADATA_ACCOUNT_V2, OPTION_SOME]),
            encode_string(name),
            encode_string(symbol),
            encode_string(uri),
            _UNCHANGED_TRAILER,
        )
    )


def _padded_string(value: str, width: int) -> bytes:
    encoded = value.encode("utf-8")
    return encode_string(value + "\x00" * max(0, width - len(encoded)))


def encode_record(
    *,
    authority: Address,
    mint: Address,
    name: str,
    symbol: str,
    uri: str,
) -> bytes:
    """
    Build record account bytes the way the program stores them (NUL padded).
    """

    return b"".join(
        (
            bytes([METADATA_V1_KEY]),
            bytes(authority),
            bytes(mint),
            _padded_string(name, MAX_NAME_LENGTH),
            _padded_string(symbol, MAX_SYMBOL_LENGTH),
            _padded_string(uri, MAX_URI_LENGTH),
            bytes([0, 0, OPTION_NONE, 1, 1]),
        )
    )
