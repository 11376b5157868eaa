"""
updater/connectors/base.py

Remote ledger client interface and shared connector errors.
"""

from __future__ import annotations

from typing import Protocol

from ledger.address import Address
from ledger.signer import Signer
from ledger.transaction import Instruction


class RpcRequestError(RuntimeError):
    """
    Raised when a ledger RPC call fails (transport, HTTP status, or RPC error).
    """

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class TransactionFailedError(RpcRequestError):
    """
    Raised when a submitted transaction is rejected or fails on-chain.
    """


class ConfirmationTimeoutError(RpcRequestError):
    """
    Raised when a submitted transaction is not confirmed in time.
    """


class RemoteClient(Protocol):
    """
    The two ledger capabilities the update engine relies on.
    """

    def fetch_raw(self, address: Address) -> bytes | None:
        """Return the account bytes at ``address``, or None when absent."""

    def submit(self, instruction: Instruction, signer: Signer) -> str:
        """Sign, send and confirm ``instruction``; return the confirmation id."""
