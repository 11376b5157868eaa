"""
updater/services/batch_orchestrator.py

Walks the target records in chunks, one record at a time, persisting progress
so an interrupted run can resume after the last completed record.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from ledger.address import Address
from ledger.signer import Signer
from updater.config import UpdaterSettings
from updater.connectors.base import RemoteClient
from updater.domain.outcomes import UpdateOutcome, utc_now
from updater.domain.records import TargetRecord
from updater.domain.run import Checkpoint, RunSummary, RunTallies
from updater.logging_utils import log_event
from updater.repositories.checkpoint_repository import CheckpointStore
from updater.repositories.run_report_repository import RunReportWriter
from updater.retry import RetryExecutor
from updater.services.cost_estimator import calculate_total_cost
from updater.services.update_engine import UpdateEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunPlan:
    """
    What a run would do before touching any record.

    ``tallies`` and ``carried_ids`` are seeded from the checkpoint with the
    previously failed records taken out, since those are attempted again.
    """

    pending: tuple[TargetRecord, ...]
    tallies: RunTallies
    carried_ids: tuple[Address, ...] = ()
    checkpoint: Checkpoint | None = None
    excluded_count: int = 0
    retried_failures: tuple[Address, ...] = field(default_factory=tuple)

    @property
    def resumed(self) -> bool:
        return self.checkpoint is not None


class BatchOrchestrator:
    """
    Drives an UpdateEngine over a manifest with chunking, delays and
    checkpoints. Dry runs never write or delete the checkpoint, and their
    report files go under the dry-run names.
    """

    def __init__(
        self,
        *,
        engine: UpdateEngine,
        signer: Signer,
        checkpoint_store: CheckpointStore,
        report_writer: RunReportWriter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._engine = engine
        self._signer = signer
        self._checkpoint_store = checkpoint_store
        self._report_writer = report_writer
        self._sleep = sleep

    def plan(self, records: Sequence[TargetRecord], resume: bool) -> RunPlan:
        """
        Split ``records`` into already-resolved and pending work.

        Raises:
            CheckpointCorruptError: If resuming and the checkpoint is unreadable.
        """

        checkpoint = self._checkpoint_store.load() if resume else None
        if checkpoint is None:
            return RunPlan(pending=tuple(records), tallies=RunTallies())

        resolved = checkpoint.resolved_ids
        previously_failed = tuple(dict.fromkeys(checkpoint.failed_ids))
        seeded = checkpoint.tallies.snapshot()
        seeded.processed = max(0, seeded.processed - len(previously_failed))
        seeded.failed = max(0, seeded.failed - len(previously_failed))

        pending = tuple(record for record in records if record.id not in resolved)
        carried = tuple(address for address in checkpoint.processed_ids if address in resolved)
        return RunPlan(
            pending=pending,
            tallies=seeded,
            carried_ids=carried,
            checkpoint=checkpoint,
            excluded_count=len(records) - len(pending),
            retried_failures=previously_failed,
        )

    def run(
        self,
        records: Sequence[TargetRecord],
        *,
        chunk_size: int,
        inter_chunk_delay: float,
        checkpoint_interval: int,
        resume: bool,
        dry_run: bool,
        record_delay: float = 0.0,
        outcome_log: list[UpdateOutcome] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RunSummary:
        """
        Process every pending record exactly once and summarize the run.

        Args:
            records: Target records in manifest order.
            chunk_size: Records per chunk (at least 1).
            inter_chunk_delay: Seconds to wait between chunks.
            checkpoint_interval: Save progress after every N records processed
                in this run; 0 disables periodic saves.
            resume: Skip records already resolved by an existing checkpoint.
            dry_run: Diff only; no submissions and no checkpoint writes.
            record_delay: Seconds to wait between records within a chunk.
            outcome_log: Caller-owned list that receives each outcome in order.
            cancel_event: When set, the run stops before the next record and
                any delay in progress ends early.

        Returns:
            RunSummary with cumulative counts (including resumed progress).
        """

        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if checkpoint_interval < 0:
            raise ValueError("checkpoint_interval must be non-negative")

        outcomes: list[UpdateOutcome] = outcome_log if outcome_log is not None else []
        plan = self.plan(records, resume)
        if plan.resumed:
            self._restore_outcome_history(outcomes)
            log_event(
                logger,
                logging.INFO,
                "run_resumed",
                checkpoint_timestamp=plan.checkpoint.timestamp.isoformat(),
                already_processed=plan.tallies.processed,
                excluded=plan.excluded_count,
                retrying_failures=len(plan.retried_failures),
            )

        tallies = plan.tallies.snapshot()
        processed_ids: list[Address] = list(plan.carried_ids)
        failed_ids: list[Address] = []
        start_time = utc_now()
        processed_this_run = 0
        cancelled = False

        pending = plan.pending
        chunks = [pending[index:index + chunk_size] for index in range(0, len(pending), chunk_size)]
        log_event(
            logger,
            logging.INFO,
            "run_started",
            pending=len(pending),
            chunks=len(chunks),
            chunk_size=chunk_size,
            dry_run=dry_run,
        )

        for chunk_number, chunk in enumerate(chunks, start=1):
            log_event(
                logger,
                logging.INFO,
                "chunk_started",
                chunk=chunk_number,
                chunks=len(chunks),
                records=len(chunk),
            )
            for position, record in enumerate(chunk):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break

                outcome = self._engine.update(record, self._signer, dry_run)
                outcomes.append(outcome)
                tallies.record(outcome)
                processed_ids.append(record.id)
                if outcome.is_failed:
                    failed_ids.append(record.id)
                processed_this_run += 1
                self._log_outcome(record, outcome)

                if (
                    not dry_run
                    and checkpoint_interval > 0
                    and processed_this_run % checkpoint_interval == 0
                ):
                    self._save_checkpoint(outcomes, processed_ids, failed_ids, tallies)

                if record_delay > 0 and position < len(chunk) - 1:
                    self._pause(record_delay, cancel_event)

            if cancelled:
                break
            if chunk_number < len(chunks) and inter_chunk_delay > 0:
                logger.debug("Waiting between chunks seconds=%.2f", inter_chunk_delay)
                self._pause(inter_chunk_delay, cancel_event)

        summary = RunSummary(
            total_processed=tallies.processed,
            successfully_updated=tallies.updated,
            skipped=tallies.skipped,
            failed=tallies.failed,
            total_cost=calculate_total_cost(outcomes),
            start_time=start_time,
            end_time=utc_now(),
            dry_run=dry_run,
            cancelled=cancelled,
        )
        self._finish(summary, outcomes, processed_ids, failed_ids, tallies)
        return summary

    def _pause(self, seconds: float, cancel_event: threading.Event | None) -> None:
        if cancel_event is None:
            self._sleep(seconds)
        else:
            cancel_event.wait(seconds)

    def _restore_outcome_history(self, outcomes: list[UpdateOutcome]) -> None:
        if self._report_writer is None or outcomes:
            return
        history = self._report_writer.load_outcome_log()
        outcomes.extend(history)
        logger.debug("Restored outcome history entries=%d", len(history))

    def _finish(
        self,
        summary: RunSummary,
        outcomes: list[UpdateOutcome],
        processed_ids: list[Address],
        failed_ids: list[Address],
        tallies: RunTallies,
    ) -> None:
        if self._report_writer is not None:
            writer = self._report_writer.for_dry_run() if summary.dry_run else self._report_writer
            writer.write_outcome_log(outcomes)
            writer.write_summary(summary)
            writer.write_failed_ids(failed_ids)

        if not summary.dry_run:
            if summary.cancelled or failed_ids:
                self._save_checkpoint(outcomes, processed_ids, failed_ids, tallies, flush=False)
            else:
                self._checkpoint_store.delete()

        log_event(
            logger,
            logging.WARNING if summary.cancelled else logging.INFO,
            "run_cancelled" if summary.cancelled else "run_completed",
            processed=summary.total_processed,
            updated=summary.successfully_updated,
            skipped=summary.skipped,
            failed=summary.failed,
            total_cost=summary.total_cost,
            duration=summary.duration,
            dry_run=summary.dry_run,
        )

    def _save_checkpoint(
        self,
        outcomes: list[UpdateOutcome],
        processed_ids: list[Address],
        failed_ids: list[Address],
        tallies: RunTallies,
        flush: bool = True,
    ) -> None:
        if flush and self._report_writer is not None:
            self._report_writer.write_outcome_log(outcomes)
        checkpoint = Checkpoint(
            last_index=tallies.processed - 1,
            processed_ids=tuple(processed_ids),
            failed_ids=tuple(failed_ids),
            tallies=tallies.snapshot(),
            timestamp=utc_now(),
        )
        self._checkpoint_store.save(checkpoint)
        log_event(
            logger,
            logging.INFO,
            "checkpoint_saved",
            processed=tallies.processed,
            failed=len(failed_ids),
        )

    @staticmethod
    def _log_outcome(record: TargetRecord, outcome: UpdateOutcome) -> None:
        level = logging.WARNING if outcome.is_failed else logging.INFO
        log_event(
            logger,
            level,
            "record_processed",
            id=str(record.id),
            row=record.row_number,
            status=outcome.status,
            reason=outcome.reason,
            confirmation_id=outcome.confirmation_id,
            simulated=outcome.simulated,
        )


def build_batch_orchestrator(
    settings: UpdaterSettings,
    *,
    client: RemoteClient,
    signer: Signer,
    sleep: Callable[[float], None] = time.sleep,
    cancel_event: threading.Event | None = None,
) -> BatchOrchestrator:
    """
    Wire engine, checkpoint store and report writer from settings.

    ``cancel_event`` also cuts retry backoff short once it is set.
    """
    engine = UpdateEngine(
        client=client,
        max_retries=settings.max_retries,
        retry_delay_seconds=settings.retry_delay_seconds,
        retry=RetryExecutor(sleep=sleep, cancel_event=cancel_event),
    )
    return BatchOrchestrator(
        engine=engine,
        signer=signer,
        checkpoint_store=CheckpointStore(settings.checkpoint_path),
        report_writer=RunReportWriter(settings.log_dir),
        sleep=sleep,
    )
