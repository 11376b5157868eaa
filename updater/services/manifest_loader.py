"""
updater/services/manifest_loader.py

Reads the manifest CSV into TargetRecords.

Required columns are `id`, `record_data`, `image` and `status`; the legacy
names `mint` and `account_data` are accepted for the first two. Bad rows are
collected and skipped, a bad header is fatal.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Sequence

from updater.config import IndexRange
from updater.domain.records import ManifestLoadResult, RowValidationError, TargetRecord
from updater.validators.manifest_validator import ManifestRowValidator

logger = logging.getLogger(__name__)

# canonical column -> accepted header names, in preference order
REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "id": ("id", "mint"),
    "record_data": ("record_data", "account_data"),
    "image": ("image",),
    "status": ("status",),
}

_MAX_LOGGED_ERRORS = 5


class ManifestHeaderError(ValueError):
    """
    Raised when the manifest is unreadable or lacks required columns.
    """


def resolve_columns(headers: Sequence[str]) -> dict[str, str]:
    """
    Map each canonical column to the header actually present.

    Raises:
        ManifestHeaderError: Listing every missing column.
    """

    present = {header.strip(): header for header in headers if header is not None}
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for canonical, candidates in REQUIRED_COLUMNS.items():
        match = next((present[name] for name in candidates if name in present), None)
        if match is None:
            missing.append(" or ".join(candidates))
        else:
            resolved[canonical] = match
    if missing:
        raise ManifestHeaderError(f"Missing required columns: {', '.join(missing)}")
    return resolved


def load_manifest(
    path: str | Path,
    validator: ManifestRowValidator | None = None,
) -> ManifestLoadResult:
    """
    Parse the manifest at ``path``.

    Rows are numbered as spreadsheet rows (the header is row 1). A repeated id
    is rejected after its first occurrence.
    """

    manifest_path = Path(path)
    row_validator = validator or ManifestRowValidator()
    records: list[TargetRecord] = []
    errors: list[RowValidationError] = []
    seen: dict[str, int] = {}
    rows_read = 0

    logger.info("Reading manifest path=%s", manifest_path)
    try:
        handle = manifest_path.open("r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise ManifestHeaderError(f"Cannot open manifest {manifest_path}: {exc}") from exc

    with handle:
        reader = csv.DictReader(handle)
        headers = reader.fieldnames or []
        if not headers:
            raise ManifestHeaderError("Manifest header row is missing.")
        columns = resolve_columns(headers)

        for row_number, raw_row in enumerate(reader, start=2):
            rows_read += 1
            if row_validator.is_completely_empty_row(raw_row):
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        message="Completely empty rows are not allowed.",
                    )
                )
                continue

            record, row_errors = row_validator.validate_row(
                row=raw_row,
                row_number=row_number,
                id_column=columns["id"],
                data_column=columns["record_data"],
            )
            if row_errors or record is None:
                errors.extend(row_errors)
                continue

            key = str(record.id)
            if key in seen:
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        column=columns["id"],
                        message=f"Duplicate id; first seen on row {seen[key]}.",
                        value=key,
                    )
                )
                continue
            seen[key] = row_number
            records.append(record)

    _log_errors(errors)
    logger.info(
        "Manifest parsed path=%s rows=%d records=%d errors=%d",
        manifest_path,
        rows_read,
        len(records),
        len(errors),
    )
    return ManifestLoadResult(records=records, errors=errors, rows_read=rows_read)


def filter_by_range(
    records: Sequence[TargetRecord],
    index_range: IndexRange | None,
) -> list[TargetRecord]:
    """
    Keep records whose position is within ``index_range`` (inclusive).
    """

    if index_range is None:
        return list(records)
    return list(records[index_range.start:index_range.end + 1])


def _log_errors(errors: list[RowValidationError]) -> None:
    if not errors:
        return
    logger.warning("Manifest row errors count=%d", len(errors))
    for error in errors[:_MAX_LOGGED_ERRORS]:
        logger.warning(
            "Rejected row=%d column=%s message=%s",
            error.row_number,
            error.column,
            error.message,
        )
    if len(errors) > _MAX_LOGGED_ERRORS:
        logger.warning("... and %d more", len(errors) - _MAX_LOGGED_ERRORS)
