"""FastAPI application for the echoguard service.

Provides REST API endpoints wrapping the echoguard package for:
- Signin context verification and context-data management
- Content screening and category tagging
- Post reports and moderator review
- Admin moderation preferences
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from echoguard import __version__
from echoguard.errors import EchoguardError
from web.backend.app.routers import admin, communities, content, context_auth

logger = logging.getLogger("echoguard.web")

app = FastAPI(
    title="echoguard API",
    description=(
        "Contextual login trust and content moderation for a social backend. "
        "Provides endpoints for signin context checks, content screening, "
        "post reports and moderation preferences."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


@app.exception_handler(EchoguardError)
async def echoguard_error_handler(request: Request, exc: EchoguardError) -> JSONResponse:
    """Render domain errors as ``{"type": ..., "message": ...}``."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(context_auth.router)
app.include_router(content.router)
app.include_router(communities.router)
app.include_router(admin.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "echoguard API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
