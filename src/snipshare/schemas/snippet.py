"""Snippet-related Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from snipshare.db.time import ms_to_iso
from snipshare.services.snippet_service import RevealedSnippet, SnippetMetadata


class SnippetCreate(BaseModel):
    """Schema for creating a new text snippet."""

    content: str = Field(..., description="Plaintext content")
    language: str | None = Field("plaintext", max_length=64, description="Display language tag")
    title: str | None = Field(None, max_length=200, description="Optional title")
    password: str | None = Field(None, description="Optional password adding a second layer")
    expires_in: int | None = Field(
        None,
        description="Lifetime in seconds; omitted or 0 means the snippet never expires",
    )
    burn_after_read: bool = Field(False, description="Delete after the second read")


class SnippetCreated(BaseModel):
    """Identifier and share path of a newly created object."""

    id: str
    url: str


class UnlockRequest(BaseModel):
    password: str = Field(..., min_length=1)


class SnippetMetadataResponse(BaseModel):
    """Non-sensitive description of a stored object. Never carries content."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    language: str
    title: str | None
    view_count: int
    created_at: str
    expires_at: str | None
    burn_after_read: bool
    requires_password: bool

    @classmethod
    def from_metadata(cls, metadata: SnippetMetadata) -> SnippetMetadataResponse:
        return cls(
            id=metadata.id,
            kind=metadata.kind.value,
            language=metadata.language,
            title=metadata.title,
            view_count=metadata.view_count,
            created_at=ms_to_iso(metadata.created_at) or "",
            expires_at=ms_to_iso(metadata.expires_at),
            burn_after_read=metadata.burn_after_read,
            requires_password=metadata.requires_password,
        )


class SnippetResponse(SnippetMetadataResponse):
    """A revealed text snippet."""

    content: str

    @classmethod
    def from_revealed(cls, revealed: RevealedSnippet) -> SnippetResponse:
        base = SnippetMetadataResponse.from_metadata(revealed.metadata)
        return cls(**base.model_dump(), content=revealed.text)
