"""
Playbooq FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from playbooq import db
from playbooq.config import settings
from playbooq.errors import AppError
from playbooq.routes import assignments as assignment_routes
from playbooq.routes import chat as chat_routes
from playbooq.routes import diagnostics as diagnostics_routes
from playbooq.routes import internal_pages as internal_page_routes
from playbooq.routes import invitations as invitation_routes
from playbooq.routes import marketplace as marketplace_routes
from playbooq.routes import playbooks as playbook_routes
from playbooq.routes import redirect as redirect_routes

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Opens the database pool on startup and closes it on shutdown.
    """
    await db.init_pool()
    logger.info("Database pool initialized")

    yield

    await db.close_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="Playbooq",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and params are 400s in the same {"error": ...} shape."""
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    msg = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"error": f"{loc}: {msg}" if loc else msg})


# Register routes
app.include_router(playbook_routes.router)
app.include_router(chat_routes.router)
app.include_router(invitation_routes.router)
app.include_router(assignment_routes.router)
app.include_router(internal_page_routes.router)
app.include_router(marketplace_routes.router)
app.include_router(redirect_routes.router)
app.include_router(diagnostics_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
