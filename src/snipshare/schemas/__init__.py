# src/snipshare/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .admin import (
    AddressActivityItem,
    AdminAuthStatus,
    AdminLogin,
    AdminSnippetItem,
    AdminSnippetPage,
    AdminToken,
    BlockedAddressItem,
    CleanupResponse,
    RateLogItem,
    SecurityAction,
    StatsResponse,
)
from .file import FileCreated, FileMetadataResponse
from .settings import LimitsResponse, LimitsUpdate, LimitsUpdated, PublicSettings
from .snippet import (
    SnippetCreate,
    SnippetCreated,
    SnippetMetadataResponse,
    SnippetResponse,
    UnlockRequest,
)

__all__ = [
    "AddressActivityItem", "AdminAuthStatus", "AdminLogin", "AdminSnippetItem",
    "AdminSnippetPage", "AdminToken", "BlockedAddressItem", "CleanupResponse",
    "RateLogItem", "SecurityAction", "StatsResponse",
    "FileCreated", "FileMetadataResponse",
    "LimitsResponse", "LimitsUpdate", "LimitsUpdated", "PublicSettings",
    "SnippetCreate", "SnippetCreated", "SnippetMetadataResponse", "SnippetResponse",
    "UnlockRequest",
]
