"""
updater/schemas/run_files.py

JSON contracts for the files a run leaves in the log directory.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ledger.address import parse_address
from updater.domain.outcomes import UpdateOutcome
from updater.domain.records import RecordFields
from updater.domain.run import Checkpoint, RunSummary, RunTallies


class RecordFieldsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    symbol: str
    uri: str

    @classmethod
    def from_fields(cls, fields: RecordFields | None) -> "RecordFieldsModel | None":
        if fields is None:
            return None
        return cls(name=fields.name, symbol=fields.symbol, uri=fields.uri)

    def to_fields(self) -> RecordFields:
        return RecordFields(name=self.name, symbol=self.symbol, uri=self.uri)


class OutcomeLogEntry(BaseModel):
    """
    One entry of `update_log.json`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    status: Literal["updated", "skipped", "failed"]
    timestamp: datetime
    reason: str | None = None
    old_values: RecordFieldsModel | None = None
    new_values: RecordFieldsModel | None = None
    confirmation_id: str | None = None
    simulated: bool = False

    @classmethod
    def from_outcome(cls, outcome: UpdateOutcome) -> "OutcomeLogEntry":
        return cls(
            id=str(outcome.id),
            status=outcome.status,
            timestamp=outcome.timestamp,
            reason=outcome.reason,
            old_values=RecordFieldsModel.from_fields(outcome.old),
            new_values=RecordFieldsModel.from_fields(outcome.new),
            confirmation_id=outcome.confirmation_id,
            simulated=outcome.simulated,
        )

    def to_outcome(self) -> UpdateOutcome:
        return UpdateOutcome(
            id=parse_address(self.id),
            status=self.status,
            timestamp=self.timestamp,
            reason=self.reason,
            old=self.old_values.to_fields() if self.old_values else None,
            new=self.new_values.to_fields() if self.new_values else None,
            confirmation_id=self.confirmation_id,
            simulated=self.simulated,
        )


class TalliesModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    processed: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_sum(self) -> "TalliesModel":
        if self.updated + self.skipped + self.failed != self.processed:
            raise ValueError("tallies do not add up to processed")
        return self


class CheckpointFile(BaseModel):
    """
    Contract for `checkpoint.json`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    last_index: int = Field(..., ge=-1)
    processed_ids: list[str]
    failed_ids: list[str] = Field(default_factory=list)
    tallies: TalliesModel
    timestamp: datetime

    @model_validator(mode="after")
    def _check_invariants(self) -> "CheckpointFile":
        if self.last_index != self.tallies.processed - 1:
            raise ValueError("last_index must equal tallies.processed - 1")
        if not set(self.failed_ids) <= set(self.processed_ids):
            raise ValueError("failed_ids must be a subset of processed_ids")
        return self

    @classmethod
    def from_checkpoint(cls, checkpoint: Checkpoint) -> "CheckpointFile":
        tallies = checkpoint.tallies
        return cls(
            last_index=checkpoint.last_index,
            processed_ids=[str(address) for address in checkpoint.processed_ids],
            failed_ids=[str(address) for address in checkpoint.failed_ids],
            tallies=TalliesModel(
                processed=tallies.processed,
                updated=tallies.updated,
                skipped=tallies.skipped,
                failed=tallies.failed,
            ),
            timestamp=checkpoint.timestamp,
        )

    def to_checkpoint(self) -> Checkpoint:
        return Checkpoint(
            last_index=self.last_index,
            processed_ids=tuple(parse_address(value) for value in self.processed_ids),
            failed_ids=tuple(parse_address(value) for value in self.failed_ids),
            tallies=RunTallies(
                processed=self.tallies.processed,
                updated=self.tallies.updated,
                skipped=self.tallies.skipped,
                failed=self.tallies.failed,
            ),
            timestamp=self.timestamp,
        )


class RunSummaryFile(BaseModel):
    """
    Contract for `summary.json`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    total_processed: int = Field(..., ge=0)
    successfully_updated: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    total_cost: float = Field(..., ge=0.0)
    start_time: datetime
    end_time: datetime
    duration: str
    duration_seconds: float
    dry_run: bool
    cancelled: bool

    @classmethod
    def from_summary(cls, summary: RunSummary) -> "RunSummaryFile":
        return cls(
            total_processed=summary.total_processed,
            successfully_updated=summary.successfully_updated,
            skipped=summary.skipped,
            failed=summary.failed,
            total_cost=summary.total_cost,
            start_time=summary.start_time,
            end_time=summary.end_time,
            duration=summary.duration,
            duration_seconds=summary.duration_seconds,
            dry_run=summary.dry_run,
            cancelled=summary.cancelled,
        )


class FailedIdsFile(BaseModel):
    """
    Contract for `failed_ids.json` (and `dry_run_failed_ids.json`), written only
    when a run had failures.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: datetime
    count: int = Field(..., ge=1)
    ids: list[str]

    @model_validator(mode="after")
    def _check_count(self) -> "FailedIdsFile":
        if self.count != len(self.ids):
            raise ValueError("count must equal the number of ids")
        return self
