"""
Health check endpoint.

Provides system health status for monitoring and load balancers.
"""

import logging

from fastapi import APIRouter
from sqlalchemy import text

from anticipation import __version__
from anticipation.api.schemas import HealthResponse
from anticipation.infrastructure.database import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Check system health.

    Runs a trivial query so monitoring sees database outages.
    """
    database = "connected"
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        database = "unavailable"

    return HealthResponse(
        status="healthy" if database == "connected" else "degraded",
        version=__version__,
        database=database,
    )
