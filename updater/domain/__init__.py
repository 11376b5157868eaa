"""
updater/domain package marker.
"""

from updater.domain.outcomes import OutcomeStatus, UpdateOutcome
from updater.domain.records import ManifestLoadResult, RecordFields, RowValidationError, TargetRecord
from updater.domain.run import Checkpoint, RunSummary, RunTallies, format_duration

__all__ = [
    "Checkpoint",
    "ManifestLoadResult",
    "OutcomeStatus",
    "RecordFields",
    "RowValidationError",
    "RunSummary",
    "RunTallies",
    "TargetRecord",
    "UpdateOutcome",
    "format_duration",
]
