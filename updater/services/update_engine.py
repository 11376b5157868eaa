"""
updater/services/update_engine.py

Per-record update protocol:

    fetch -> decode -> authorize -> diff -> (dry run) -> build -> submit

Every path ends in exactly one UpdateOutcome; nothing raises past
``UpdateEngine.update`` so a batch can keep going after any single failure.
Fetch and submit are retried independently; authority mismatches, missing
records and malformed records are not retried.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ledger.address import (
    TOKEN_METADATA_PROGRAM_ID,
    Address,
    derive_metadata_address,
    short_address,
)
from ledger.authority import AuthorityMismatchError, authorize
from ledger.codec import InstructionEncodingError, MalformedRecordError, decode_record
from ledger.diff import changed_fields
from ledger.signer import Signer
from ledger.transaction import build_update_instruction
from updater.connectors.base import RemoteClient
from updater.domain.outcomes import UpdateOutcome, utc_now
from updater.domain.records import RecordFields, TargetRecord
from updater.retry import RetryExecutor

logger = logging.getLogger(__name__)


class UpdateEngine:
    """
    Drives one record through the update protocol against a RemoteClient.
    """

    def __init__(
        self,
        *,
        client: RemoteClient,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        retry: RetryExecutor | None = None,
        program_id: Address = TOKEN_METADATA_PROGRAM_ID,
    ) -> None:
        self._client = client
        self._max_retries = max(0, max_retries)
        self._retry_delay_seconds = max(0.0, retry_delay_seconds)
        self._retry = retry or RetryExecutor()
        self._program_id = program_id

    def update(self, record: TargetRecord, caller: Signer, dry_run: bool) -> UpdateOutcome:
        """
        Bring one record to its target values.

        Args:
            record: Target values from the manifest.
            caller: Signer whose public key must be the record's authority.
            dry_run: When True, stop after diffing and report what would change.

        Returns:
            ``updated`` (confirmed, or simulated in dry-run mode), ``skipped``
            when the record already matches, or ``failed`` with a reason.
        """

        timestamp = utc_now()
        try:
            return self._update(record, caller, dry_run, timestamp)
        except Exception as exc:
            logger.exception("Unexpected update failure id=%s error=%s", record.id, exc)
            return UpdateOutcome.failed(
                id=record.id,
                reason=f"Unexpected error: {exc}",
                timestamp=timestamp,
            )

    def _update(
        self,
        record: TargetRecord,
        caller: Signer,
        dry_run: bool,
        timestamp: datetime,
    ) -> UpdateOutcome:
        metadata_address = derive_metadata_address(record.id, self._program_id)

        logger.debug("Fetching record id=%s account=%s", record.id, metadata_address)
        try:
            raw = self._retry.run(
                lambda: self._client.fetch_raw(metadata_address),
                self._max_retries,
                self._retry_delay_seconds,
                label=f"fetch {short_address(record.id)}",
            )
        except Exception as exc:
            return UpdateOutcome.failed(
                id=record.id,
                reason=f"Failed to fetch current metadata: {exc}",
                timestamp=timestamp,
            )

        if raw is None:
            return UpdateOutcome.failed(
                id=record.id,
                reason=f"Record not found: no metadata account at {metadata_address}",
                timestamp=timestamp,
            )

        try:
            current = decode_record(raw)
        except MalformedRecordError as exc:
            return UpdateOutcome.failed(
                id=record.id,
                reason=f"Malformed record: {exc}",
                timestamp=timestamp,
            )

        try:
            authorize(current, caller.public_key)
        except AuthorityMismatchError as exc:
            return UpdateOutcome.failed(id=record.id, reason=str(exc), timestamp=timestamp)

        changed = changed_fields(current, record)
        if not changed:
            return UpdateOutcome.skipped(
                id=record.id,
                reason="metadata already matches",
                timestamp=timestamp,
            )

        old_values = RecordFields(name=current.name, symbol=current.symbol, uri=current.uri)
        new_values = record.fields
        logger.debug("Record differs id=%s fields=%s", record.id, ",".join(changed))

        if dry_run:
            return UpdateOutcome.updated(
                id=record.id,
                old=old_values,
                new=new_values,
                simulated=True,
                timestamp=timestamp,
            )

        try:
            instruction = build_update_instruction(
                metadata_address=metadata_address,
                update_authority=caller.public_key,
                name=record.name,
                symbol=record.symbol,
                uri=record.uri,
                program_id=self._program_id,
            )
        except InstructionEncodingError as exc:
            return UpdateOutcome.failed(
                id=record.id,
                reason=f"Cannot encode update: {exc}",
                timestamp=timestamp,
            )

        logger.debug("Submitting update id=%s", record.id)
        try:
            confirmation_id = self._retry.run(
                lambda: self._client.submit(instruction, caller),
                self._max_retries,
                self._retry_delay_seconds,
                label=f"submit {short_address(record.id)}",
            )
        except Exception as exc:
            return UpdateOutcome.failed(
                id=record.id,
                reason=f"Submission failed: {exc}",
                timestamp=timestamp,
            )

        return UpdateOutcome.updated(
            id=record.id,
            old=old_values,
            new=new_values,
            confirmation_id=confirmation_id,
            timestamp=timestamp,
        )
