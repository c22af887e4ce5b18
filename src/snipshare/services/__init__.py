# src/snipshare/services/__init__.py
"""Core services for the SnipShare application."""

from .admin_service import AdminService
from .crypto import CryptoService
from .envelope import EnvelopeService
from .rate_limit import RateLimiter
from .snippet_service import SnippetService

__all__ = [
    "AdminService",
    "CryptoService",
    "EnvelopeService",
    "RateLimiter",
    "SnippetService",
]
