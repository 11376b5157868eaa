"""
updater/schemas/manifest.py

Contract for the JSON object held in a manifest row's `record_data` cell.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ManifestRecordData(BaseModel):
    """
    Target values for one record; unknown keys are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    id: str | None = None
    name: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    uri: str = Field(min_length=1)
