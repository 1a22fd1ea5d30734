"""
Health check API endpoints.

Routes: GET /health, GET /health/db

Dependencies: debrid_proxy.boundary.db
System role: Health check HTTP API
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from debrid_proxy.boundary.db import get_database, ping
from debrid_proxy.core.exceptions import ConfigurationError
from debrid_proxy.core.time_utils import utc_now_iso
from debrid_proxy.models.common import ErrorResponse, SuccessResponse
from debrid_proxy.models.health import DatabaseHealthStatus, HealthStatus

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=SuccessResponse[HealthStatus])
async def health_check() -> SuccessResponse[HealthStatus]:
    """Basic liveness check."""
    return SuccessResponse(
        value=HealthStatus(
            status="ok",
            uptime=round(time.monotonic() - _STARTED_AT, 3),
            timestamp=utc_now_iso(),
        )
    )


@router.get(
    "/db",
    response_model=SuccessResponse[DatabaseHealthStatus],
    responses={503: {"model": ErrorResponse}},
)
async def health_check_db():
    """Database health check; 503 when MongoDB is unconfigured or unreachable."""
    try:
        db = get_database()
        await ping(db)
    except (ConfigurationError, PyMongoError) as e:
        logger.warning(
            "Database health check failed",
            extra={"error_type": type(e).__name__, "error_msg": str(e)},
        )
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                error="Database unavailable", details={"reason": str(e)}
            ).model_dump(),
        )

    return SuccessResponse(value=DatabaseHealthStatus(status="ok", database=db.name))
