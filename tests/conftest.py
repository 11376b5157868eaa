"""
tests/conftest.py

Shared in-memory fakes: a ledger client backed by a dict of record bytes, a
recording sleep and deterministic addresses.
"""

from __future__ import annotations

import hashlib
import struct
import threading
from typing import Callable

import pytest

from ledger.address import Address, derive_metadata_address
from ledger.codec import OnChainRecord, decode_record, encode_record
from ledger.signer import KeypairSigner, Signer
from ledger.transaction import Instruction


def make_address(seed: int | str) -> Address:
    return Address(hashlib.sha256(str(seed).encode("utf-8")).digest())


def decode_update_payload(data: bytes) -> tuple[str, str, str]:
    """Pull name/symbol/uri back out of an update instruction payload."""
    offset = 2
    values = []
    for _ in range(3):
        (length,) = struct.unpack_from("<I", data, offset)
        offset += 4
        values.append(data[offset:offset + length].decode("utf-8"))
        offset += length
    return values[0], values[1], values[2]


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingEvent(threading.Event):
    """Cancel event whose waits return at once and are recorded."""

    def __init__(self) -> None:
        super().__init__()
        self.waits: list[float | None] = []

    def wait(self, timeout: float | None = None) -> bool:
        self.waits.append(timeout)
        return self.is_set()


class FakeRemoteClient:
    """
    Ledger stand-in keyed by metadata account address.

    ``fetch_errors``/``submit_errors`` are raised in order before normal
    behaviour resumes; ``failing_mints`` makes every fetch for a mint fail.
    """

    def __init__(self) -> None:
        self.accounts: dict[Address, bytes] = {}
        self._owners: dict[Address, tuple[Address, Address]] = {}
        self.fetch_errors: list[BaseException] = []
        self.submit_errors: list[BaseException] = []
        self.failing_mints: set[Address] = set()
        self.fetch_calls: list[Address] = []
        self.submit_attempts = 0
        self.submitted: list[Instruction] = []
        self.on_fetch: Callable[[Address], None] | None = None

    def add_record(
        self,
        *,
        mint: Address,
        authority: Address,
        name: str,
        symbol: str,
        uri: str,
    ) -> Address:
        metadata_address = derive_metadata_address(mint)
        self.accounts[metadata_address] = encode_record(
            authority=authority,
            mint=mint,
            name=name,
            symbol=symbol,
            uri=uri,
        )
        self._owners[metadata_address] = (authority, mint)
        return metadata_address

    def current(self, mint: Address) -> OnChainRecord:
        return decode_record(self.accounts[derive_metadata_address(mint)])

    def fetch_raw(self, address: Address) -> bytes | None:
        self.fetch_calls.append(address)
        if self.on_fetch is not None:
            self.on_fetch(address)
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        owner = self._owners.get(address)
        if owner is not None and owner[1] in self.failing_mints:
            raise RuntimeError("node unavailable")
        return self.accounts.get(address)

    def submit(self, instruction: Instruction, signer: Signer) -> str:
        self.submit_attempts += 1
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        metadata_address = instruction.accounts[0].pubkey
        authority, mint = self._owners[metadata_address]
        name, symbol, uri = decode_update_payload(instruction.data)
        self.accounts[metadata_address] = encode_record(
            authority=authority,
            mint=mint,
            name=name,
            symbol=symbol,
            uri=uri,
        )
        self.submitted.append(instruction)
        return f"sig-{len(self.submitted)}"


@pytest.fixture()
def fake_client() -> FakeRemoteClient:
    return FakeRemoteClient()


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def recording_event() -> RecordingEvent:
    return RecordingEvent()


@pytest.fixture(scope="session")
def signer() -> KeypairSigner:
    return KeypairSigner.generate()


@pytest.fixture(scope="session")
def other_signer() -> KeypairSigner:
    return KeypairSigner.generate()


@pytest.fixture()
def address_factory() -> Callable[[int | str], Address]:
    return make_address
