"""Health check endpoint for Docker/Kubernetes probes."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class HealthStatus(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    timestamp: str = Field(description="ISO timestamp of the check")
    version: str = Field(description="Application version")
    database: bool = Field(description="Database reachable")
    providers: dict[str, bool] = Field(
        default_factory=dict, description="Which providers have credentials configured"
    )


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request) -> JSONResponse:
    """Liveness plus a database ping. 503 when the database is unreachable."""
    settings = request.app.state.settings
    db_ok = False
    try:
        db_ok = await request.app.state.db.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check database ping failed: %s", e)

    body = HealthStatus(
        status="healthy" if db_ok else "unhealthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=settings.app_version,
        database=db_ok,
        providers={
            "spotify": settings.spotify.is_configured,
            "ticketmaster": settings.ticketmaster.is_configured,
            "setlistfm": settings.setlistfm.is_configured,
        },
    )
    code = status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=body.model_dump(), status_code=code)
