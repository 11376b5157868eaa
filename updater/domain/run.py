"""
updater/domain/run.py

Run-level state: running tallies, checkpoints and the end-of-run summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ledger.address import Address
from updater.domain.outcomes import OutcomeStatus, UpdateOutcome


@dataclass
class RunTallies:
    """
    Cumulative counters; ``processed`` always equals the sum of the others.
    """

    processed: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: UpdateOutcome) -> None:
        self.processed += 1
        if outcome.status == OutcomeStatus.UPDATED:
            self.updated += 1
        elif outcome.status == OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    def snapshot(self) -> "RunTallies":
        return RunTallies(
            processed=self.processed,
            updated=self.updated,
            skipped=self.skipped,
            failed=self.failed,
        )


@dataclass(frozen=True)
class Checkpoint:
    """
    Durable progress marker.

    ``last_index`` is ``tallies.processed - 1``; ``processed_ids`` lists every
    record whose outcome was logged before the save, in processing order, and
    ``failed_ids`` is the subset whose outcome was a failure.
    """

    last_index: int
    processed_ids: tuple[Address, ...]
    failed_ids: tuple[Address, ...]
    tallies: RunTallies
    timestamp: datetime

    @property
    def resolved_ids(self) -> frozenset[Address]:
        """Ids that a resumed run must not process again."""
        return frozenset(self.processed_ids) - frozenset(self.failed_ids)


def format_duration(seconds: float) -> str:
    total_seconds = int(max(0.0, seconds))
    minutes, secs = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@dataclass(frozen=True)
class RunSummary:
    """
    End-of-run aggregate, derived from tallies and the outcome log.
    """

    total_processed: int
    successfully_updated: int
    skipped: int
    failed: int
    total_cost: float
    start_time: datetime
    end_time: datetime
    dry_run: bool = False
    cancelled: bool = False

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def duration(self) -> str:
        return format_duration(self.duration_seconds)
