"""
Notes API Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application.
How:   `create_app(settings)` builds the collaborators from an explicit
       Settings object, registers middleware, exception handlers and routes.
Who:   uvicorn (`uvicorn notes_api.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────┐ ┌─────┐  │
    │  │  Req ID  │→│  Logging        │→│ GZip │→│CORS │  │
    │  └──────────┘ └─────────────────┘ └──────┘ └─────┘  │
    │                                                     │
    │  app.state:                                         │
    │    settings · database · file_service · note_service│
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ NotFound→404 │ everything else→500 (opaque)  │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

API documentation is generated from the pydantic models and served at
/api-docs (Swagger UI), /redoc and /openapi.json.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notes_api import __version__
from notes_api.config import Settings, get_settings
from notes_api.database import Database
from notes_api.exceptions import NotesAPIError, NotFoundError
from notes_api.middleware.logging import RequestLoggingMiddleware
from notes_api.middleware.request_id import RequestIDMiddleware, request_id_var
from notes_api.routes import health, notes
from notes_api.services.file_service import FileService
from notes_api.services.note_service import NoteService

logger = logging.getLogger(__name__)

INTERNAL_ERROR_BODY = {"error": "Internal Server Error"}
NOT_FOUND_BODY = {"error": "Note not found"}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (Docker captures it)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Warn about missing Cloudinary credentials (attachments will fail,
           plain notes still work)
    Shutdown:
        1. Dispose the database engine (close all pooled connections)
    """
    settings: Settings = app.state.settings

    setup_logging(settings)
    logger.info("Notes API starting up...")

    missing = settings.missing_upload_credentials()
    if missing:
        logger.warning(
            "File storage is not configured (missing %s); uploads will fail.",
            ", ".join(missing),
        )

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("API docs: http://%s:%d/api-docs", settings.host, settings.port)

    yield

    logger.info("Notes API shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to responses.

    Handler hierarchy:
        NotFoundError           → 404 {"error": "Note not found"}
        NotesAPIError (base)    → 500 {"error": "Internal Server Error"}
        RequestValidationError  → 500 (same body; causes stay opaque)
        Exception (fallback)    → 500 (same body, stack trace logged)

    The response never carries the cause. Details go to the log only.
    """

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        logger.info("[%s] %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=404, content=NOT_FOUND_BODY)

    @app.exception_handler(NotesAPIError)
    async def handle_app_error(request: Request, exc: NotesAPIError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s",
            rid,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.error("[%s] Request validation failed: %s", rid, exc.errors())
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to build collaborators from. Defaults to
                  the settings read from the environment.

    Collaborators built here and stored on `app.state`:
        database      Database (engine + session factory)
        file_service  FileService (Cloudinary uploads)
        note_service  NoteService (business logic)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Notes API",
        description=(
            "CRUD API for notes with optional image attachments and "
            "case-insensitive search."
        ),
        version=__version__,
        docs_url="/api-docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        # One schema per model, so hand-written $refs in the create body resolve
        separate_input_output_schemas=False,
    )

    database = Database(settings)
    file_service = FileService(settings)
    app.state.settings = settings
    app.state.database = database
    app.state.file_service = file_service
    app.state.note_service = NoteService(file_service)

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()
