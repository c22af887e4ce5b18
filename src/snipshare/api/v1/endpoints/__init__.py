# src/snipshare/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .files import router as files_router
from .snippets import router as snippets_router
from .system import router as system_router

__all__ = [
    "admin_router",
    "files_router",
    "snippets_router",
    "system_router",
]
