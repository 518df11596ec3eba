"""
Notes API Backend: Health Check Route
======================================

`GET /health` answers 200 whenever the process is up; the body says whether
the note store is reachable. Load balancers key on `status`.

The Cloudinary side is reported from configuration only (credentials present
or not). Probing it would need an authenticated API call on every check.
"""

import logging
import time

from fastapi import APIRouter, Request

from notes_api import __version__
from notes_api.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

STARTED_AT = time.monotonic()


async def _database_status(request: Request) -> str:
    try:
        await request.app.state.database.ping()
    except Exception as e:
        logger.warning("Note store unreachable from health check: %s", e)
        return "disconnected"
    return "connected"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Database connectivity, file-storage configuration, version and uptime.",
)
async def health_check(request: Request) -> HealthResponse:
    database = await _database_status(request)
    missing = request.app.state.settings.missing_upload_credentials()

    return HealthResponse(
        status="healthy" if database == "connected" else "unhealthy",
        version=__version__,
        database=database,
        file_storage="unconfigured" if missing else "configured",
        uptime_seconds=round(time.monotonic() - STARTED_AT, 2),
    )
