# src/snipshare/api/v1/endpoints/files.py
"""File upload and download endpoints for the SnipShare API."""

from __future__ import annotations

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Header, Query, Response, UploadFile, status
from fastapi.responses import JSONResponse

from snipshare.api.v1.dependencies import (
    AdminDep,
    BlobStoreDep,
    ClientAddressDep,
    SessionDep,
    to_http_exception,
)
from snipshare.models import ContentKind
from snipshare.schemas import FileCreated, FileMetadataResponse
from snipshare.services.errors import PasswordRequiredError, SnipShareError
from snipshare.services.limits import load_limits
from snipshare.services.rate_limit import RateLimiter
from snipshare.services.snippet_service import SnippetService

router = APIRouter(prefix="/files", tags=["files"])


def get_snippet_service_dep(db: SessionDep, blob_store: BlobStoreDep) -> SnippetService:
    """Get SnippetService dependency for dependency injection."""
    return SnippetService(db, blob_store)


SnippetServiceDep = Annotated[SnippetService, Depends(get_snippet_service_dep)]


@router.post("", response_model=FileCreated, status_code=status.HTTP_201_CREATED)
def upload_file(
    db: SessionDep,
    service: SnippetServiceDep,
    address: ClientAddressDep,
    file: Annotated[UploadFile, File(description="File to share")],
    password: Annotated[str | None, Form()] = None,
    expires_in: Annotated[int | None, Form()] = None,
    burn_after_read: Annotated[bool, Form()] = False,
) -> FileCreated:
    """Upload and encrypt a file.

    Args:
        db: Database session
        service: Snippet lifecycle service
        address: Caller address used for rate limiting
        file: Uploaded file
        password: Optional password adding a second encryption layer
        expires_in: Lifetime in seconds; omitted or 0 means never
        burn_after_read: Delete after the second download

    Returns:
        The new file's id, share path, name and size

    Raises:
        HTTPException: If the caller is blocked, rate limited, or the file is rejected
    """
    limits = load_limits(db)
    try:
        RateLimiter.enforce(db, address, limits)
        # One byte past the limit is enough to reject oversize uploads.
        data = file.file.read(limits.max_file_size_bytes + 1)
        snippet = service.create_file(
            data,
            file.filename or "upload",
            limits,
            content_type=file.content_type,
            password=password,
            expires_in=expires_in,
            burn_after_read=burn_after_read,
        )
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    finally:
        file.file.close()

    return FileCreated(
        id=snippet.id,
        url=f"/{snippet.id}",
        file_name=snippet.file_name or "",
        file_size=snippet.file_size or 0,
    )


@router.get("/{file_id}", response_model=None)
def download_file(
    file_id: str,
    service: SnippetServiceDep,
    password: Annotated[str | None, Query()] = None,
    x_password: Annotated[str | None, Header()] = None,
) -> Response:
    """Decrypt and download a file.

    The password may be passed as the `password` query parameter or the
    `X-Password` header. A protected file requested without one answers 401
    with its metadata.
    """
    supplied = password or x_password
    try:
        revealed = service.read(file_id, supplied, kind=ContentKind.FILE)
    except PasswordRequiredError as exc:
        body = FileMetadataResponse.from_metadata(exc.metadata).model_dump()
        body["detail"] = str(exc)
        return JSONResponse(body, status_code=status.HTTP_401_UNAUTHORIZED)
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc

    meta = revealed.metadata
    headers = {
        "Content-Disposition": f"attachment; filename=\"{quote(meta.file_name or 'download')}\"",
    }
    if meta.burn_after_read:
        headers["Cache-Control"] = "no-store"
    return Response(
        revealed.content,
        media_type=meta.file_mime_type or "application/octet-stream",
        headers=headers,
    )


@router.delete("/{file_id}")
def delete_file(
    file_id: str,
    _admin: AdminDep,
    service: SnippetServiceDep,
) -> dict[str, bool]:
    """Delete a file and its stored bytes (admin only)."""
    try:
        service.delete(file_id)
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    return {"success": True}
