# src/snipshare/api/v1/endpoints/admin.py
"""Admin endpoints: session, dashboard, moderation, security and settings."""

from __future__ import annotations

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials

from snipshare.api.v1.dependencies import (
    AdminDep,
    BlobStoreDep,
    SessionDep,
    bearer_scheme,
    to_http_exception,
)
from snipshare.core.security import (
    ADMIN_COOKIE_NAME,
    check_admin_password,
    create_admin_token,
    verify_admin_token,
)
from snipshare.core.settings import settings
from snipshare.schemas import (
    AddressActivityItem,
    AdminAuthStatus,
    AdminLogin,
    AdminSnippetItem,
    AdminSnippetPage,
    AdminToken,
    BlockedAddressItem,
    CleanupResponse,
    LimitsResponse,
    LimitsUpdate,
    LimitsUpdated,
    RateLogItem,
    SecurityAction,
    StatsResponse,
)
from snipshare.services.admin_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, AdminService
from snipshare.services.errors import SnipShareError
from snipshare.services.limits import load_limits, update_limits
from snipshare.services.rate_limit import RateLimiter
from snipshare.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def get_snippet_service_dep(db: SessionDep, blob_store: BlobStoreDep) -> SnippetService:
    """Get SnippetService dependency for dependency injection."""
    return SnippetService(db, blob_store)


SnippetServiceDep = Annotated[SnippetService, Depends(get_snippet_service_dep)]


# --- session -------------------------------------------------------------------------
@router.post("/login", response_model=AdminToken)
def login(payload: AdminLogin, response: Response) -> AdminToken:
    """Exchange the admin password for a session token.

    The token is returned in the body and set as an HTTP-only cookie.

    Raises:
        HTTPException: If the password is wrong or admin login is disabled
    """
    if not check_admin_password(payload.password):
        logger.warning("Rejected admin login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid password",
        )
    token = create_admin_token()
    response.set_cookie(
        ADMIN_COOKIE_NAME,
        token,
        max_age=settings.admin_token_ttl_seconds,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )
    return AdminToken(token=token, expires_in=settings.admin_token_ttl_seconds)


@router.post("/logout")
def logout(response: Response) -> dict[str, bool]:
    """Clear the admin session cookie."""
    response.delete_cookie(ADMIN_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/auth-check", response_model=AdminAuthStatus)
def auth_check(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AdminAuthStatus:
    """Report whether the caller holds a valid admin session."""
    token = credentials.credentials if credentials else request.cookies.get(ADMIN_COOKIE_NAME)
    auth = verify_admin_token(token)
    return AdminAuthStatus(authenticated=auth.authenticated, reason=auth.reason)


# --- dashboard -----------------------------------------------------------------------
@router.get("/stats", response_model=StatsResponse)
def get_stats(_admin: AdminDep, db: SessionDep) -> StatsResponse:
    """Return dashboard totals."""
    return StatsResponse.model_validate(AdminService.stats(db))


@router.get("/snippets", response_model=AdminSnippetPage)
def list_snippets(
    _admin: AdminDep,
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> AdminSnippetPage:
    """List stored objects, newest first, with optional id/title search."""
    result = AdminService.list_snippets(db, page=page, page_size=page_size, search=search)
    return AdminSnippetPage(
        snippets=[AdminSnippetItem.model_validate(item) for item in result.items],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        total_pages=result.total_pages,
    )


@router.delete("/snippets/{snippet_id}")
def delete_snippet(
    snippet_id: str,
    _admin: AdminDep,
    service: SnippetServiceDep,
) -> dict[str, bool]:
    """Delete any stored object and purge its blob."""
    try:
        service.delete(snippet_id)
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    return {"success": True}


@router.post("/cleanup", response_model=CleanupResponse)
def run_cleanup(_admin: AdminDep, service: SnippetServiceDep) -> CleanupResponse:
    """Run one expiry sweep now."""
    result = service.cleanup_expired()
    return CleanupResponse(
        marked_deleted=result.marked_deleted,
        purged_blob_keys=result.purged_blob_keys,
    )


# --- security ------------------------------------------------------------------------
SecuritySection = Literal["ip-activity", "blocked", "rate-log"]


@router.get("/security")
def get_security(
    _admin: AdminDep,
    db: SessionDep,
    section: Annotated[SecuritySection, Query()] = "ip-activity",
) -> dict[str, object]:
    """Return one security view.

    Args:
        section: `ip-activity` (rate entries of the last 24h grouped by address
            and action), `blocked` (the denylist) or `rate-log` (latest entries)
    """
    if section == "blocked":
        blocked = RateLimiter.blocked_addresses(db)
        return {"blocked": [BlockedAddressItem.model_validate(row) for row in blocked]}
    if section == "rate-log":
        entries = RateLimiter.rate_log(db)
        return {"logs": [RateLogItem.model_validate(row) for row in entries]}
    activity = RateLimiter.address_activity(db)
    return {"activity": [AddressActivityItem.model_validate(row) for row in activity]}


@router.post("/security")
def update_security(
    payload: SecurityAction,
    _admin: AdminDep,
    db: SessionDep,
) -> dict[str, object]:
    """Block or unblock an address.

    Raises:
        HTTPException: 409 if the address is already blocked, 404 when
            unblocking an address that is not on the denylist
    """
    address = payload.address.strip()
    if payload.action == "block":
        try:
            RateLimiter.block_address(db, address, payload.reason)
        except SnipShareError as exc:
            raise to_http_exception(exc) from exc
        return {"success": True, "message": f"Blocked {address}"}

    if not RateLimiter.unblock_address(db, address):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Address is not blocked",
        )
    return {"success": True, "message": f"Unblocked {address}"}


# --- settings ------------------------------------------------------------------------
@router.get("/settings", response_model=LimitsResponse)
def get_settings(_admin: AdminDep, db: SessionDep) -> LimitsResponse:
    """Return the current operator limits."""
    return LimitsResponse.model_validate(load_limits(db))


@router.put("/settings", response_model=LimitsUpdated)
def put_settings(
    payload: LimitsUpdate,
    _admin: AdminDep,
    db: SessionDep,
) -> LimitsUpdated:
    """Validate and store operator limits; omitted keys keep their value."""
    try:
        updated, limits = update_limits(db, payload.model_dump(exclude_none=True))
    except SnipShareError as exc:
        raise to_http_exception(exc) from exc
    return LimitsUpdated(updated=updated, settings=LimitsResponse.model_validate(limits))
