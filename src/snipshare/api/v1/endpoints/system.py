# src/snipshare/api/v1/endpoints/system.py
"""Public settings, scheduled cleanup and health endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from snipshare.api.v1.dependencies import (
    BlobStoreDep,
    SessionDep,
    bearer_scheme,
    to_http_exception,
)
from snipshare.core.security import check_cleanup_token
from snipshare.core.settings import settings
from snipshare.db.time import now_ms
from snipshare.schemas import CleanupResponse, PublicSettings
from snipshare.services.errors import UnauthorizedError
from snipshare.services.limits import load_limits
from snipshare.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/settings/public", response_model=PublicSettings)
def get_public_settings(db: SessionDep) -> PublicSettings:
    """Return the limits a client needs before uploading."""
    limits = load_limits(db)
    return PublicSettings(
        max_file_size_mb=limits.max_file_size_mb,
        allowed_file_types=sorted(limits.allowed_extensions),
    )


@router.post("/cleanup", response_model=CleanupResponse)
def scheduled_cleanup(
    db: SessionDep,
    blob_store: BlobStoreDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> CleanupResponse:
    """Run one expiry sweep for a scheduler.

    Args:
        db: Database session
        blob_store: Blob storage for purging expired files
        credentials: Bearer token that must equal `CLEANUP_TOKEN`

    Returns:
        Number of objects marked deleted and blob keys purged

    Raises:
        HTTPException: If the token is missing or wrong, or no token is configured
    """
    if not check_cleanup_token(credentials.credentials if credentials else None):
        raise to_http_exception(UnauthorizedError())
    result = SnippetService(db, blob_store).cleanup_expired()
    return CleanupResponse(
        marked_deleted=result.marked_deleted,
        purged_blob_keys=result.purged_blob_keys,
    )


@router.get("/system/health")
def get_system_health(db: SessionDep) -> dict[str, object]:
    """Health check including database connectivity.

    Args:
        db: Database session

    Returns:
        Dictionary with overall status, component health and version info
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        db_status = f"unhealthy: {exc.__class__.__name__}"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": now_ms(),
        "components": {"database": db_status},
        "version": settings.app_version,
    }
