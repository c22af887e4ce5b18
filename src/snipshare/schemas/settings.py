"""Operator settings Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LimitsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rate_limit_per_minute: int
    rate_limit_per_hour: int
    rate_limit_per_day: int
    max_file_size_mb: int
    allowed_file_types: str


class LimitsUpdate(BaseModel):
    """Partial update; values are validated by the limits service."""

    model_config = ConfigDict(extra="ignore")

    rate_limit_per_minute: int | float | str | None = None
    rate_limit_per_hour: int | float | str | None = None
    rate_limit_per_day: int | float | str | None = None
    max_file_size_mb: int | float | str | None = None
    allowed_file_types: str | None = None


class LimitsUpdated(BaseModel):
    success: bool = True
    updated: list[str]
    settings: LimitsResponse


class PublicSettings(BaseModel):
    max_file_size_mb: int
    allowed_file_types: list[str]
