"""File upload Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel

from snipshare.schemas.snippet import SnippetMetadataResponse
from snipshare.services.snippet_service import SnippetMetadata


class FileCreated(BaseModel):
    id: str
    url: str
    file_name: str
    file_size: int


class FileMetadataResponse(SnippetMetadataResponse):
    """Metadata of an uploaded file, returned when a password is still required."""

    file_name: str | None
    file_size: int | None
    file_mime_type: str | None

    @classmethod
    def from_metadata(cls, metadata: SnippetMetadata) -> FileMetadataResponse:
        base = SnippetMetadataResponse.from_metadata(metadata)
        return cls(
            **base.model_dump(),
            file_name=metadata.file_name,
            file_size=metadata.file_size,
            file_mime_type=metadata.file_mime_type,
        )
