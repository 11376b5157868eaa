"""
updater/repositories/checkpoint_repository.py

Durable checkpoint storage in `<log_dir>/checkpoint.json`.

Precondition: one run owns the file at a time. Nothing enforces this; two
concurrent runs against the same log directory will overwrite each other.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from updater.domain.run import Checkpoint
from updater.repositories.atomic_file import write_text_atomic
from updater.schemas.run_files import CheckpointFile

logger = logging.getLogger(__name__)

CHECKPOINT_FILENAME = "checkpoint.json"


class CheckpointCorruptError(RuntimeError):
    """
    Raised when a checkpoint file exists but cannot be read back.
    """


class CheckpointStore:
    """
    Save, load and delete the run checkpoint.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @classmethod
    def in_directory(cls, log_dir: str | Path) -> "CheckpointStore":
        return cls(Path(log_dir) / CHECKPOINT_FILENAME)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def save(self, checkpoint: Checkpoint) -> None:
        document = CheckpointFile.from_checkpoint(checkpoint)
        write_text_atomic(self._path, document.model_dump_json(indent=2))
        logger.debug(
            "Checkpoint saved path=%s processed=%d",
            self._path,
            checkpoint.tallies.processed,
        )

    def load(self) -> Checkpoint | None:
        """
        Return the stored checkpoint, or None when there is none.

        Raises:
            CheckpointCorruptError: If the file is present but unreadable.
        """

        if not self._path.exists():
            return None
        try:
            document = CheckpointFile.model_validate_json(self._path.read_text(encoding="utf-8"))
            return document.to_checkpoint()
        except (OSError, ValidationError, ValueError) as exc:
            raise CheckpointCorruptError(
                f"Checkpoint at {self._path} is unreadable; inspect or delete it before resuming."
            ) from exc

    def delete(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        logger.debug("Checkpoint deleted path=%s", self._path)
