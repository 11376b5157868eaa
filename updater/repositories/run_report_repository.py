"""
updater/repositories/run_report_repository.py

Outcome log, summary and failed-id files written at the end of (and during) a
run.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from ledger.address import Address
from updater.domain.outcomes import UpdateOutcome
from updater.domain.run import RunSummary
from updater.repositories.atomic_file import write_text_atomic
from updater.schemas.run_files import FailedIdsFile, OutcomeLogEntry, RunSummaryFile

logger = logging.getLogger(__name__)

OUTCOME_LOG_FILENAME = "update_log.json"
SUMMARY_FILENAME = "summary.json"
FAILED_IDS_FILENAME = "failed_ids.json"
DRY_RUN_PREFIX = "dry_run_"

_OUTCOME_LOG_ADAPTER = TypeAdapter(list[OutcomeLogEntry])


class RunReportWriter:
    """
    Persists run artifacts into one log directory.

    Every filename carries ``file_prefix``; dry runs write through
    ``for_dry_run()`` so a preview never replaces a live run's files.
    """

    def __init__(self, log_dir: str | Path, file_prefix: str = "") -> None:
        self._log_dir = Path(log_dir)
        self._file_prefix = file_prefix

    def for_dry_run(self) -> "RunReportWriter":
        return RunReportWriter(self._log_dir, file_prefix=DRY_RUN_PREFIX)

    @property
    def outcome_log_path(self) -> Path:
        return self._log_dir / f"{self._file_prefix}{OUTCOME_LOG_FILENAME}"

    @property
    def summary_path(self) -> Path:
        return self._log_dir / f"{self._file_prefix}{SUMMARY_FILENAME}"

    @property
    def failed_ids_path(self) -> Path:
        return self._log_dir / f"{self._file_prefix}{FAILED_IDS_FILENAME}"

    def write_outcome_log(self, outcomes: Sequence[UpdateOutcome]) -> None:
        entries = [OutcomeLogEntry.from_outcome(outcome) for outcome in outcomes]
        payload = _OUTCOME_LOG_ADAPTER.dump_json(entries, indent=2).decode("utf-8")
        write_text_atomic(self.outcome_log_path, payload)

    def load_outcome_log(self) -> list[UpdateOutcome]:
        """
        Read a previous run's outcome log; a missing file yields an empty list.
        """

        if not self.outcome_log_path.exists():
            return []
        try:
            entries = _OUTCOME_LOG_ADAPTER.validate_json(
                self.outcome_log_path.read_text(encoding="utf-8")
            )
        except ValidationError as exc:
            logger.warning(
                "Ignoring unreadable outcome log path=%s error=%s",
                self.outcome_log_path,
                exc,
            )
            return []
        return [entry.to_outcome() for entry in entries]

    def write_summary(self, summary: RunSummary) -> None:
        document = RunSummaryFile.from_summary(summary)
        write_text_atomic(self.summary_path, document.model_dump_json(indent=2))

    def write_failed_ids(self, failed_ids: Sequence[Address]) -> None:
        """
        Write the failed-id file, or remove a previous one when nothing failed.
        """

        if not failed_ids:
            if self.failed_ids_path.exists():
                self.failed_ids_path.unlink()
                logger.debug("Removed stale failed ids path=%s", self.failed_ids_path)
            return
        document = FailedIdsFile(
            timestamp=datetime.now(timezone.utc),
            count=len(failed_ids),
            ids=[str(address) for address in failed_ids],
        )
        write_text_atomic(self.failed_ids_path, document.model_dump_json(indent=2))

    def load_failed_ids(self) -> list[str]:
        if not self.failed_ids_path.exists():
            return []
        payload = json.loads(self.failed_ids_path.read_text(encoding="utf-8"))
        return FailedIdsFile.model_validate(payload).ids
