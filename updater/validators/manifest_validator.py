"""
updater/validators/manifest_validator.py

Row-level validation and parsing for manifest CSV rows.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from pydantic import ValidationError

from ledger.address import Address, InvalidAddressError, parse_address
from ledger.codec import validate_field_lengths
from updater.domain.records import RowValidationError, TargetRecord
from updater.schemas.manifest import ManifestRecordData


class ManifestRowValidator:
    """
    Validates one manifest row and turns it into a TargetRecord.
    """

    def is_completely_empty_row(self, row: Mapping[str, Any]) -> bool:
        return all(self._is_blank(value) for value in row.values())

    def validate_row(
        self,
        *,
        row: Mapping[str, str | None],
        row_number: int,
        id_column: str,
        data_column: str,
    ) -> tuple[TargetRecord | None, list[RowValidationError]]:
        """
        Validate one raw CSV row.

        Every field is trimmed. The row is rejected when the id is missing or
        not a 32-byte base58 address, when `record_data` is not a JSON object
        holding non-empty name/symbol/uri, or when a field exceeds its
        on-chain byte limit.
        """

        errors: list[RowValidationError] = []

        address = self._parse_address(
            value=row.get(id_column),
            row_number=row_number,
            column=id_column,
            errors=errors,
        )
        data = self._parse_record_data(
            value=row.get(data_column),
            row_number=row_number,
            column=data_column,
            errors=errors,
        )

        if data is not None:
            if data.id and address is not None and data.id != str(address):
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        column=data_column,
                        message="record_data.id does not match the row id.",
                        value=data.id,
                    )
                )
            for problem in validate_field_lengths(data.name, data.symbol, data.uri):
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        column=data_column,
                        message=problem,
                    )
                )

        if errors or address is None or data is None:
            return None, errors

        return (
            TargetRecord(
                id=address,
                name=data.name,
                symbol=data.symbol,
                uri=data.uri,
                row_number=row_number,
            ),
            [],
        )

    def _parse_address(
        self,
        *,
        value: str | None,
        row_number: int,
        column: str,
        errors: list[RowValidationError],
    ) -> Address | None:
        if self._is_blank(value):
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=column,
                    message="Required value is missing.",
                    value=self._stringify_value(value),
                )
            )
            return None

        raw = str(value).strip()
        try:
            return parse_address(raw)
        except InvalidAddressError as exc:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=column,
                    message=f"Invalid address: {exc}",
                    value=raw,
                )
            )
            return None

    def _parse_record_data(
        self,
        *,
        value: str | None,
        row_number: int,
        column: str,
        errors: list[RowValidationError],
    ) -> ManifestRecordData | None:
        if self._is_blank(value):
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=column,
                    message="Required value is missing.",
                    value=self._stringify_value(value),
                )
            )
            return None

        raw = str(value).strip()
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=column,
                    message=f"{column} must be valid JSON.",
                    value=raw,
                )
            )
            return None

        if not isinstance(parsed, dict):
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column=column,
                    message=f"{column} must be a JSON object.",
                    value=raw,
                )
            )
            return None

        try:
            return ManifestRecordData.model_validate(parsed)
        except ValidationError as exc:
            for detail in exc.errors():
                location = ".".join(str(part) for part in detail["loc"])
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        column=f"{column}.{location}" if location else column,
                        message=detail["msg"],
                    )
                )
            return None

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, (list, tuple)):
            return all(str(item).strip() == "" for item in value)
        return str(value).strip() == ""

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)
