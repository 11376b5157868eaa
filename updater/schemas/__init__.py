"""
updater/schemas package marker.
"""

from updater.schemas.manifest import ManifestRecordData
from updater.schemas.run_files import (
    CheckpointFile,
    FailedIdsFile,
    OutcomeLogEntry,
    RecordFieldsModel,
    RunSummaryFile,
    TalliesModel,
)

__all__ = [
    "CheckpointFile",
    "FailedIdsFile",
    "ManifestRecordData",
    "OutcomeLogEntry",
    "RecordFieldsModel",
    "RunSummaryFile",
    "TalliesModel",
]
