"""
tests/test_codec.py

Record layout decoding and update instruction encoding.
"""

from __future__ import annotations

import struct

import pytest

from ledger.codec import (
    MAX_NAME_LENGTH,
    MAX_SYMBOL_LENGTH,
    MAX_URI_LENGTH,
    UPDATE_METADATA_ACCOUNT_V2,
    InstructionEncodingError,
    MalformedRecordError,
    OnChainRecord,
    decode_record,
    encode_record,
    encode_string,
    encode_update_instruction,
    validate_field_lengths,
)


@pytest.fixture()
def record_bytes(address_factory) -> bytes:
    return encode_record(
        authority=address_factory("authority"),
        mint=address_factory("mint"),
        name="Doge #1",
        symbol="DOGE",
        uri="https://example.com/1.json",
    )


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


def test_encode_string_uses_u32_le_prefix() -> None:
    assert encode_string("abc") == b"\x03\x00\x00\x00abc"
    assert encode_string("") == b"\x00\x00\x00\x00"


def test_encode_string_counts_utf8_bytes() -> None:
    encoded = encode_string("é")
    assert struct.unpack_from("<I", encoded)[0] == 2


# ---------------------------------------------------------------------------
# decode_record
# ---------------------------------------------------------------------------


class TestDecodeRecord:
    def test_round_trip(self, record_bytes: bytes, address_factory) -> None:
        record = decode_record(record_bytes)
        assert record == OnChainRecord(
            authority=address_factory("authority"),
            name="Doge #1",
            symbol="DOGE",
            uri="https://example.com/1.json",
        )

    def test_nul_padding_is_stripped(self, record_bytes: bytes) -> None:
        record = decode_record(record_bytes)
        assert "\x00" not in record.name
        assert "\x00" not in record.symbol
        assert "\x00" not in record.uri

    def test_stored_strings_are_padded_to_field_limits(self, record_bytes: bytes) -> None:
        (name_length,) = struct.unpack_from("<I", record_bytes, 65)
        assert name_length == MAX_NAME_LENGTH

    def test_unpadded_strings_decode(self, address_factory) -> None:
        raw = (
            bytes([4])
            + bytes(address_factory("authority"))
            + bytes(address_factory("mint"))
            + encode_string("n")
            + encode_string("s")
            + encode_string("u")
        )
        record = decode_record(raw)
        assert (record.name, record.symbol, record.uri) == ("n", "s", "u")

    @pytest.mark.parametrize("length", [0, 1, 33, 64, 66, 69, 80, 120])
    def test_truncated_input_is_malformed(self, record_bytes: bytes, length: int) -> None:
        with pytest.raises(MalformedRecordError):
            decode_record(record_bytes[:length])

    def test_invalid_utf8_is_malformed(self, address_factory) -> None:
        raw = (
            bytes([4])
            + bytes(address_factory("authority"))
            + bytes(address_factory("mint"))
            + struct.pack("<I", 2)
            + b"\xff\xfe"
            + encode_string("s")
            + encode_string("u")
        )
        with pytest.raises(MalformedRecordError):
            decode_record(raw)

    def test_length_prefix_past_end_is_malformed(self, address_factory) -> None:
        raw = (
            bytes([4])
            + bytes(address_factory("authority"))
            + bytes(address_factory("mint"))
            + struct.pack("<I", 1000)
            + b"short"
        )
        with pytest.raises(MalformedRecordError):
            decode_record(raw)


# ---------------------------------------------------------------------------
# encode_update_instruction
# ---------------------------------------------------------------------------


class TestEncodeUpdateInstruction:
    def test_layout(self) -> None:
        data = encode_update_instruction("Name", "SYM", "https://x")
        assert data[0] == UPDATE_METADATA_ACCOUNT_V2
        assert data[1] == 1
        expected_strings = encode_string("Name") + encode_string("SYM") + encode_string("https://x")
        assert data[2:2 + len(expected_strings)] == expected_strings
        assert data[2 + len(expected_strings):] == bytes(8)

    def test_total_length(self) -> None:
        data = encode_update_instruction("a", "bb", "ccc")
        assert len(data) == 2 + (4 + 1) + (4 + 2) + (4 + 3) + 8

    def test_limits_are_inclusive(self) -> None:
        encode_update_instruction("n" * MAX_NAME_LENGTH, "s" * MAX_SYMBOL_LENGTH, "u" * MAX_URI_LENGTH)

    @pytest.mark.parametrize(
        "name, symbol, uri",
        [
            ("n" * (MAX_NAME_LENGTH + 1), "S", "u"),
            ("n", "s" * (MAX_SYMBOL_LENGTH + 1), "u"),
            ("n", "S", "u" * (MAX_URI_LENGTH + 1)),
        ],
    )
    def test_overlong_fields_are_rejected(self, name: str, symbol: str, uri: str) -> None:
        with pytest.raises(InstructionEncodingError):
            encode_update_instruction(name, symbol, uri)

    def test_encoded_values_decode_back_through_record_layout(self, address_factory) -> None:
        data = encode_update_instruction("Doge", "DG", "ipfs://cid")
        strings = data[2:-8]
        raw = bytes([4]) + bytes(address_factory("a")) + bytes(address_factory("m")) + strings
        record = decode_record(raw)
        assert (record.name, record.symbol, record.uri) == ("Doge", "DG", "ipfs://cid")


def test_validate_field_lengths_counts_bytes() -> None:
    # 11 two-byte characters is 22 bytes: fine for name, too long for symbol.
    value = "é" * 11
    assert validate_field_lengths(value, "S", "u") == []
    problems = validate_field_lengths("n", value, "u")
    assert len(problems) == 1
    assert problems[0].startswith("symbol")
