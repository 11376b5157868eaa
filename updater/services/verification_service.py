"""
updater/services/verification_service.py

Post-run check that on-chain values match the manifest, cross-referenced
with the outcome log of the run that wrote them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ledger.address import TOKEN_METADATA_PROGRAM_ID, Address, derive_metadata_address
from ledger.codec import MalformedRecordError, decode_record
from ledger.diff import changed_fields
from updater.connectors.base import RemoteClient
from updater.domain.outcomes import UpdateOutcome
from updater.domain.records import TargetRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordVerification:
    id: Address
    matches: bool
    mismatched_fields: tuple[str, ...] = ()
    error: str | None = None
    logged_status: str | None = None
    confirmation_id: str | None = None


@dataclass
class VerificationReport:
    results: list[RecordVerification] = field(default_factory=list)

    @property
    def verified(self) -> int:
        return sum(1 for result in self.results if result.matches)

    @property
    def mismatched(self) -> int:
        return len(self.results) - self.verified

    @property
    def logged_skips(self) -> int:
        return sum(1 for result in self.results if result.logged_status == "skipped")

    @property
    def issues(self) -> list[str]:
        issues: list[str] = []
        for result in self.results:
            if result.error:
                issues.append(f"{result.id}: {result.error}")
            for field_name in result.mismatched_fields:
                issues.append(f"{result.id}: {field_name} mismatch")
        return issues


class VerificationService:
    def __init__(
        self,
        *,
        client: RemoteClient,
        program_id: Address = TOKEN_METADATA_PROGRAM_ID,
    ) -> None:
        self._client = client
        self._program_id = program_id

    def verify(
        self,
        records: Sequence[TargetRecord],
        outcome_log: Sequence[UpdateOutcome] = (),
    ) -> VerificationReport:
        """
        Compare every record's on-chain name/symbol/uri to the manifest.

        When an id appears several times in ``outcome_log`` the latest entry
        wins.
        """

        latest: dict[Address, UpdateOutcome] = {}
        for outcome in outcome_log:
            latest[outcome.id] = outcome

        report = VerificationReport()
        for record in records:
            logged = latest.get(record.id)
            result = self._verify_one(record, logged)
            report.results.append(result)
            if result.matches:
                logger.info("Verified id=%s", record.id)
            else:
                logger.warning(
                    "Verification mismatch id=%s fields=%s error=%s",
                    record.id,
                    ",".join(result.mismatched_fields),
                    result.error,
                )
        return report

    def _verify_one(
        self,
        record: TargetRecord,
        logged: UpdateOutcome | None,
    ) -> RecordVerification:
        logged_status = logged.status if logged else None
        confirmation_id = logged.confirmation_id if logged else None

        metadata_address = derive_metadata_address(record.id, self._program_id)
        try:
            raw = self._client.fetch_raw(metadata_address)
            if raw is None:
                error = "No metadata account found"
            else:
                mismatched = changed_fields(decode_record(raw), record)
                return RecordVerification(
                    id=record.id,
                    matches=not mismatched,
                    mismatched_fields=tuple(mismatched),
                    logged_status=logged_status,
                    confirmation_id=confirmation_id,
                )
        except MalformedRecordError as exc:
            error = f"Malformed record: {exc}"
        except Exception as exc:
            error = f"Fetch failed: {exc}"

        return RecordVerification(
            id=record.id,
            matches=False,
            error=error,
            logged_status=logged_status,
            confirmation_id=confirmation_id,
        )
