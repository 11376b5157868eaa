"""
updater/domain/records.py

Manifest-side domain models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ledger.address import Address


@dataclass(frozen=True)
class RecordFields:
    """
    The three mutable record fields this tool manages.
    """

    name: str
    symbol: str
    uri: str


@dataclass(frozen=True)
class TargetRecord:
    """
    One manifest row: which record to touch and the values it should hold.
    """

    id: Address
    name: str
    symbol: str
    uri: str
    row_number: int | None = None

    @property
    def fields(self) -> RecordFields:
        return RecordFields(name=self.name, symbol=self.symbol, uri=self.uri)


@dataclass(frozen=True)
class RowValidationError:
    """
    One manifest row validation error detail.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class ManifestLoadResult:
    """
    Parsed manifest rows plus the rows that were rejected.
    """

    records: list[TargetRecord]
    errors: list[RowValidationError] = field(default_factory=list)
    rows_read: int = 0
