"""Admin credential checks and session tokens.

The admin session is a short-lived HS256 JWT signed with `SECRET_KEY`. It is
delivered as an HTTP-only cookie and also accepted as a Bearer token.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from snipshare.core.settings import settings

logger = logging.getLogger(__name__)

ADMIN_COOKIE_NAME = "snipshare_admin_token"
ADMIN_SUBJECT = "admin"


@dataclass(frozen=True)
class AdminAuth:
    """Result of checking an admin token."""

    authenticated: bool
    reason: str | None = None


def check_admin_password(candidate: str | None) -> bool:
    """Compare `candidate` with the configured admin password in constant time.

    An unset `ADMIN_PASSWORD` disables admin login entirely.
    """
    expected = settings.admin_password
    if not expected or not candidate:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def create_admin_token(
    secret: str | None = None,
    ttl_seconds: int | None = None,
    now: datetime | None = None,
) -> str:
    """Issue a signed admin session token.

    Args:
        secret: Signing key; defaults to `SECRET_KEY`.
        ttl_seconds: Token lifetime; defaults to `ADMIN_TOKEN_TTL_SECONDS`.
        now: Issue time, for tests.

    Returns:
        The encoded JWT.
    """
    issued = now or datetime.now(UTC)
    ttl = settings.admin_token_ttl_seconds if ttl_seconds is None else ttl_seconds
    payload = {
        "sub": ADMIN_SUBJECT,
        "iat": issued,
        "exp": issued + timedelta(seconds=ttl),
    }
    encoded: str = jwt.encode(
        payload,
        secret or settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded


def verify_admin_token(token: str | None, secret: str | None = None) -> AdminAuth:
    """Validate an admin session token and explain a rejection."""
    if not token:
        return AdminAuth(authenticated=False, reason="No token provided")
    try:
        payload = jwt.decode(
            token, secret or settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        return AdminAuth(authenticated=False, reason="Token expired")
    except JWTError as exc:
        logger.debug("Rejected admin token: %s", exc)
        return AdminAuth(authenticated=False, reason="Invalid token")
    if payload.get("sub") != ADMIN_SUBJECT:
        return AdminAuth(authenticated=False, reason="Invalid token")
    return AdminAuth(authenticated=True)


def check_cleanup_token(candidate: str | None) -> bool:
    """Return True when `candidate` matches `CLEANUP_TOKEN`; unset disables the endpoint."""
    expected = settings.cleanup_token
    if not expected or not candidate:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
