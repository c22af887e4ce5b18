# src/snipshare/main.py
"""Main entry point for the SnipShare application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from snipshare.api.v1 import admin_router, files_router, snippets_router, system_router
from snipshare.core.settings import settings
from snipshare.db.session import create_tables

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="SnipShare API",
    description="Encrypted snippet and file sharing API",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(snippets_router, prefix="/api/v1")
app.include_router(files_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


def configure_logging() -> None:
    """Apply `LOG_LEVEL` to the package logger."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.getLogger("snipshare").setLevel(level)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.auto_create_tables:
        create_tables()
    if not settings.admin_password:
        logger.warning("ADMIN_PASSWORD is not set; admin login is disabled")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Encrypted snippet and file sharing API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("snipshare.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
