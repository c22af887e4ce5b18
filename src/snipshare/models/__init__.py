# src/snipshare/models/__init__.py
"""SQLAlchemy models for the SnipShare application."""

from .blocked_address import BlockedAddress
from .rate import RateLimitEntry
from .setting import AppSetting
from .snippet import (
    BURN_AFTER_VIEWS,
    ContentKind,
    PasswordProtected,
    Protection,
    Snippet,
    Unprotected,
)

__all__ = [
    "AppSetting",
    "BlockedAddress",
    "RateLimitEntry",
    "BURN_AFTER_VIEWS", "ContentKind", "PasswordProtected", "Protection", "Snippet", "Unprotected",
]
