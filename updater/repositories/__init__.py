"""
updater/repositories package marker.
"""

from updater.repositories.checkpoint_repository import CheckpointCorruptError, CheckpointStore
from updater.repositories.run_report_repository import RunReportWriter

__all__ = [
    "CheckpointCorruptError",
    "CheckpointStore",
    "RunReportWriter",
]
