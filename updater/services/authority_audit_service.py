"""
updater/services/authority_audit_service.py

Read-only pre-flight check: does the caller hold update authority over every
manifest record?
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ledger.address import TOKEN_METADATA_PROGRAM_ID, Address, derive_metadata_address
from ledger.codec import MalformedRecordError, decode_record
from updater.connectors.base import RemoteClient
from updater.domain.records import TargetRecord
from updater.logging_utils import log_event

logger = logging.getLogger(__name__)


class AuthorityStatus:
    HAS_AUTHORITY = "has_authority"
    NO_AUTHORITY = "no_authority"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AuthorityCheck:
    id: Address
    status: str
    authority: Address | None = None
    detail: str | None = None


@dataclass
class AuthorityAuditReport:
    caller: Address
    checks: list[AuthorityCheck] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for check in self.checks if check.status == status)

    @property
    def has_authority(self) -> int:
        return self.count(AuthorityStatus.HAS_AUTHORITY)

    @property
    def no_authority(self) -> int:
        return self.count(AuthorityStatus.NO_AUTHORITY)

    @property
    def not_found(self) -> int:
        return self.count(AuthorityStatus.NOT_FOUND)

    @property
    def issues(self) -> list[str]:
        return [
            f"{check.id}: {check.detail}"
            for check in self.checks
            if check.status != AuthorityStatus.HAS_AUTHORITY
        ]

    @property
    def all_authorized(self) -> bool:
        return bool(self.checks) and self.has_authority == len(self.checks)


class AuthorityAuditService:
    """
    Fetches each record once and compares its authority to ``caller``.
    """

    def __init__(
        self,
        *,
        client: RemoteClient,
        program_id: Address = TOKEN_METADATA_PROGRAM_ID,
    ) -> None:
        self._client = client
        self._program_id = program_id

    def audit(self, records: Sequence[TargetRecord], caller: Address) -> AuthorityAuditReport:
        report = AuthorityAuditReport(caller=caller)
        for record in records:
            check = self._check(record, caller)
            report.checks.append(check)
            log_event(
                logger,
                logging.INFO if check.status == AuthorityStatus.HAS_AUTHORITY else logging.WARNING,
                "authority_checked",
                id=str(record.id),
                status=check.status,
                authority=str(check.authority) if check.authority else None,
            )
        return report

    def _check(self, record: TargetRecord, caller: Address) -> AuthorityCheck:
        metadata_address = derive_metadata_address(record.id, self._program_id)
        try:
            raw = self._client.fetch_raw(metadata_address)
        except Exception as exc:
            return AuthorityCheck(
                id=record.id,
                status=AuthorityStatus.NOT_FOUND,
                detail=f"Fetch failed: {exc}",
            )
        if raw is None:
            return AuthorityCheck(
                id=record.id,
                status=AuthorityStatus.NOT_FOUND,
                detail="Record not found",
            )
        try:
            current = decode_record(raw)
        except MalformedRecordError as exc:
            return AuthorityCheck(
                id=record.id,
                status=AuthorityStatus.NOT_FOUND,
                detail=f"Malformed record: {exc}",
            )

        if current.authority == caller:
            return AuthorityCheck(
                id=record.id,
                status=AuthorityStatus.HAS_AUTHORITY,
                authority=current.authority,
            )
        return AuthorityCheck(
            id=record.id,
            status=AuthorityStatus.NO_AUTHORITY,
            authority=current.authority,
            detail=f"Authority mismatch (required: {current.authority})",
        )
