"""Admin dashboard Pydantic schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from snipshare.db.time import ms_to_iso


class AdminLogin(BaseModel):
    password: str


class AdminToken(BaseModel):
    success: bool = True
    token: str
    expires_in: int


class AdminAuthStatus(BaseModel):
    authenticated: bool
    reason: str | None = None


class StatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    active: int
    today: int
    deleted: int
    password_protected: int
    burn_after_read: int
    rate_limit_entries_24h: int


class AdminSnippetItem(BaseModel):
    """Listing row; metadata only."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    title: str | None
    language: str
    file_name: str | None
    file_size: int | None
    is_password_protected: bool
    burn_after_read: bool
    view_count: int
    is_deleted: bool
    created_at: str
    expires_at: str | None

    @field_validator("created_at", "expires_at", mode="before")
    @classmethod
    def _render_timestamp(cls, value: object) -> object:
        if isinstance(value, int):
            return ms_to_iso(value)
        return value


class AdminSnippetPage(BaseModel):
    snippets: list[AdminSnippetItem]
    page: int
    page_size: int
    total: int
    total_pages: int


class CleanupResponse(BaseModel):
    success: bool = True
    marked_deleted: int
    purged_blob_keys: list[str]


class AddressActivityItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address: str
    action: str
    count: int
    last_activity: str

    @field_validator("last_activity", mode="before")
    @classmethod
    def _render_timestamp(cls, value: object) -> object:
        if isinstance(value, int):
            return ms_to_iso(value)
        return value


class BlockedAddressItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address: str
    reason: str | None
    blocked_at: str
    blocked_by: str

    @field_validator("blocked_at", mode="before")
    @classmethod
    def _render_timestamp(cls, value: object) -> object:
        if isinstance(value, int):
            return ms_to_iso(value)
        return value


class RateLogItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address: str
    action: str
    timestamp: str

    @field_validator("timestamp", mode="before")
    @classmethod
    def _render_timestamp(cls, value: object) -> object:
        if isinstance(value, int):
            return ms_to_iso(value)
        return value


class SecurityAction(BaseModel):
    """Block or unblock one address."""

    action: Literal["block", "unblock"]
    address: str = Field(..., min_length=1, max_length=64)
    reason: str | None = Field(None, max_length=500)
