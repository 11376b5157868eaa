"""
updater/domain/outcomes.py

Per-record update outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from ledger.address import Address
from updater.domain.records import RecordFields


class OutcomeStatus:
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UpdateOutcome:
    """
    Result of one update attempt for one record.

    ``status`` selects the variant: ``updated`` carries old/new values and, when
    a transaction was confirmed, ``confirmation_id`` (``simulated`` marks dry
    runs); ``skipped`` and ``failed`` carry a human-readable ``reason``.
    """

    id: Address
    status: str
    timestamp: datetime
    reason: str | None = None
    old: RecordFields | None = None
    new: RecordFields | None = None
    confirmation_id: str | None = None
    simulated: bool = False

    @classmethod
    def updated(
        cls,
        *,
        id: Address,
        old: RecordFields,
        new: RecordFields,
        confirmation_id: str | None = None,
        simulated: bool = False,
        timestamp: datetime | None = None,
    ) -> "UpdateOutcome":
        return cls(
            id=id,
            status=OutcomeStatus.UPDATED,
            timestamp=timestamp or utc_now(),
            reason="dry run - would update" if simulated else None,
            old=old,
            new=new,
            confirmation_id=confirmation_id,
            simulated=simulated,
        )

    @classmethod
    def skipped(cls, *, id: Address, reason: str, timestamp: datetime | None = None) -> "UpdateOutcome":
        return cls(id=id, status=OutcomeStatus.SKIPPED, timestamp=timestamp or utc_now(), reason=reason)

    @classmethod
    def failed(cls, *, id: Address, reason: str, timestamp: datetime | None = None) -> "UpdateOutcome":
        return cls(id=id, status=OutcomeStatus.FAILED, timestamp=timestamp or utc_now(), reason=reason)

    @property
    def is_updated(self) -> bool:
        return self.status == OutcomeStatus.UPDATED

    @property
    def is_skipped(self) -> bool:
        return self.status == OutcomeStatus.SKIPPED

    @property
    def is_failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED
