"""
ledger/authority.py

Update-authority gate for decoded records.
"""

from __future__ import annotations

from ledger.address import Address
from ledger.codec import OnChainRecord


class AuthorityMismatchError(PermissionError):
    """
    Raised when the caller is not the record's update authority.

    Attributes:
        expected: The caller's identity.
        found: The authority stored on the record.
    """

    def __init__(self, *, expected: Address, found: Address) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            f"Update authority mismatch. Expected: {expected}, Found: {found}"
        )


def authorize(record: OnChainRecord, caller: Address) -> None:
    if record.authority != caller:
        raise AuthorityMismatchError(expected=caller, found=record.authority)
