# src/snipshare/api/v1/endpoints/snippets.py
"""Text snippet endpoints for the SnipShare API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from snipshare.api.v1.dependencies import (
    BlobStoreDep,
    ClientAddressDep,
    SessionDep,
    to_http_exception,
)
from snipshare.core.constants import raw_content_type
from snipshare.models import ContentKind
from snipshare.schemas import (
    SnippetCreate,
    SnippetCreated,
    SnippetMetadataResponse,
    SnippetResponse,
    UnlockRequest,
)
from snipshare.services.errors import NotFoundError, PasswordRequiredError, SnipShareError
from snipshare.services.limits import load_limits
from snipshare.services.rate_limit import RateLimiter
from snipshare.services.snippet_service import SnippetService

router = APIRouter(prefix="/snippets", tags=["snippets"])


def get_snippet_service_dep(db: SessionDep, blob_store: BlobStoreDep) -> SnippetService:
    """Get SnippetService dependency for dependency injection."""
    return SnippetService(db, blob_store)


SnippetServiceDep = Annotated[SnippetService, Depends(get_snippet_service_dep)]


@router.post("", response_model=SnippetCreated, status_code=status.HTTP_201_CREATED)
def create_snippet(
    payload: SnippetCreate,
    db: SessionDep,
    service: SnippetServiceDep,
    address: ClientAddressDep,
) -> SnippetCreated:
    """Create a new encrypted text snippet.

    Args:
        payload: Snippet content and options
        db: Database session
        service: Snippet lifecycle service
        address: Caller address used for rate limiting

    Returns:
        The new snippet's id and share path

    Raises:
        HTTPException: If the caller is blocked, rate limited, or the input is invalid
    """
    try:
        RateLimiter.enforce(db, address, load_limits(db))
        snippet = service.create_text(
            payload.content,
            language=payload.language,
            title=payload.title,
            password=payload.password,
            expires_in=payload.expires_in,
            burn_after_read=payload.burn_after_read,
        )
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    return SnippetCreated(id=snippet.id, url=f"/{snippet.id}")


@router.get("/{snippet_id}", response_model=None)
def get_snippet(
    snippet_id: str,
    service: SnippetServiceDep,
) -> SnippetResponse | SnippetMetadataResponse:
    """Read a snippet, or describe it if a password is required.

    Password-protected snippets answer with metadata only; use the unlock
    endpoint to reveal their content.

    Args:
        snippet_id: Snippet identifier
        service: Snippet lifecycle service

    Returns:
        The decrypted snippet, or its metadata with `requires_password` set

    Raises:
        HTTPException: If the snippet is not found or cannot be decrypted
    """
    try:
        revealed = service.read(snippet_id, kind=ContentKind.TEXT)
    except PasswordRequiredError as exc:
        return SnippetMetadataResponse.from_metadata(exc.metadata)
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    return SnippetResponse.from_revealed(revealed)


@router.post("/{snippet_id}/unlock", response_model=SnippetResponse)
def unlock_snippet(
    snippet_id: str,
    payload: UnlockRequest,
    service: SnippetServiceDep,
) -> SnippetResponse:
    """Reveal a password-protected snippet.

    Raises:
        HTTPException: 400 if the snippet has no password, 401 on a wrong password
    """
    try:
        revealed = service.unlock(snippet_id, payload.password, kind=ContentKind.TEXT)
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    return SnippetResponse.from_revealed(revealed)


@router.get("/{snippet_id}/meta", response_model=SnippetMetadataResponse)
def get_snippet_metadata(
    snippet_id: str,
    service: SnippetServiceDep,
) -> SnippetMetadataResponse:
    """Describe a snippet without counting a view."""
    try:
        metadata = service.get_metadata(snippet_id, kind=ContentKind.TEXT)
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    return SnippetMetadataResponse.from_metadata(metadata)


@router.get("/{snippet_id}/raw")
def get_raw_snippet(snippet_id: str, service: SnippetServiceDep) -> Response:
    """Return snippet content as a plain body for command-line clients.

    Password-protected snippets are refused here.
    """
    not_found = Response(
        "Snippet not found or has expired.\n",
        status_code=status.HTTP_404_NOT_FOUND,
        media_type="text/plain; charset=utf-8",
    )
    try:
        metadata = service.get_metadata(snippet_id, kind=ContentKind.TEXT)
        if metadata.requires_password:
            return Response(
                "This snippet is password protected. Use the web interface to view it.\n",
                status_code=status.HTTP_403_FORBIDDEN,
                media_type="text/plain; charset=utf-8",
            )
        revealed = service.read(snippet_id, kind=ContentKind.TEXT)
    except NotFoundError:
        return not_found
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc

    meta = revealed.metadata
    headers = {
        "X-Snippet-Language": meta.language,
        "X-Snippet-Title": meta.title or "Untitled",
        "X-Snippet-Views": str(meta.view_count),
        "Cache-Control": "no-store" if meta.burn_after_read else "public, max-age=60",
    }
    return Response(
        revealed.content,
        media_type=raw_content_type(meta.language),
        headers=headers,
    )
