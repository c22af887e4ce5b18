"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated, Final

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from snipshare.core.security import ADMIN_COOKIE_NAME, AdminAuth, verify_admin_token
from snipshare.db.session import get_db
from snipshare.services.blob_store import BlobStore, get_blob_store
from snipshare.services.errors import (
    AlreadyBlockedError,
    BlockedError,
    ContentTooLargeError,
    DecryptionFailedError,
    IncorrectPasswordError,
    InvalidContentError,
    InvalidExpirationError,
    InvalidFileTypeError,
    InvalidSettingError,
    NotFoundError,
    NotPasswordProtectedError,
    PasswordRequiredError,
    RateLimitedError,
    SnipShareError,
    UnauthorizedError,
)

# Bearer is optional: the admin guard also accepts the session cookie.
bearer_scheme = HTTPBearer(auto_error=False)

ERROR_STATUS: Final[dict[type[SnipShareError], int]] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PasswordRequiredError: status.HTTP_401_UNAUTHORIZED,
    IncorrectPasswordError: status.HTTP_401_UNAUTHORIZED,
    DecryptionFailedError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ContentTooLargeError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    InvalidContentError: status.HTTP_400_BAD_REQUEST,
    InvalidExpirationError: status.HTTP_400_BAD_REQUEST,
    InvalidFileTypeError: status.HTTP_400_BAD_REQUEST,
    RateLimitedError: status.HTTP_429_TOO_MANY_REQUESTS,
    BlockedError: status.HTTP_403_FORBIDDEN,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    NotPasswordProtectedError: status.HTTP_400_BAD_REQUEST,
    AlreadyBlockedError: status.HTTP_409_CONFLICT,
    InvalidSettingError: status.HTTP_400_BAD_REQUEST,
}


def to_http_exception(exc: SnipShareError) -> HTTPException:
    """Translate a core error into the matching HTTP error.

    Args:
        exc: Error raised by a core service

    Returns:
        HTTPException carrying the error message as detail
    """
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=str(exc))


def get_client_address(request: Request) -> str:
    """Resolve the caller's address from proxy headers or the socket peer.

    Args:
        request: Incoming request

    Returns:
        The first address found, or "unknown"
    """
    cf_ip = request.headers.get("cf-connecting-ip")
    if cf_ip and cf_ip.strip():
        return cf_ip.strip()
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_blob_store_dep() -> BlobStore:
    """Get the blob store for dependency injection."""
    return get_blob_store()


def require_admin(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AdminAuth:
    """Require a valid admin session from the cookie or a Bearer token.

    Args:
        request: Incoming request, used for the session cookie
        credentials: Optional Bearer credentials

    Returns:
        The successful authentication result

    Raises:
        HTTPException: If no valid admin token was presented
    """
    token = request.cookies.get(ADMIN_COOKIE_NAME)
    if credentials is not None:
        token = credentials.credentials
    auth = verify_admin_token(token)
    if not auth.authenticated:
        raise to_http_exception(UnauthorizedError())
    return auth


# Type aliases for common dependencies
SessionDep = Annotated[Session, Depends(get_db)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store_dep)]
AdminDep = Annotated[AdminAuth, Depends(require_admin)]
ClientAddressDep = Annotated[str, Depends(get_client_address)]
