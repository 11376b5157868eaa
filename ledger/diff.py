"""
ledger/diff.py

Change detection between on-chain values and manifest targets.
"""

from __future__ import annotations

from typing import Protocol

COMPARED_FIELDS: tuple[str, ...] = ("name", "symbol", "uri")


class HasRecordFields(Protocol):
    name: str
    symbol: str
    uri: str


def changed_fields(current: HasRecordFields, target: HasRecordFields) -> list[str]:
    """
    Names of fields whose trimmed values differ (case-sensitive).
    """

    return [
        field_name
        for field_name in COMPARED_FIELDS
        if getattr(current, field_name).strip() != getattr(target, field_name).strip()
    ]


def is_different(current: HasRecordFields, target: HasRecordFields) -> bool:
    return bool(changed_fields(current, target))
