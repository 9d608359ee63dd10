"""
Maintenance endpoints for development and testing.

Only mounted when cleanup is enabled (ENABLE_CLEANUP, or DEBUG=true).
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from anticipation.api.dependencies import OrchestratorDep
from anticipation.api.schemas import ApiResponse
from anticipation.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/anticipations", tags=["maintenance"])


@router.delete("/cleanup", response_model=ApiResponse[str])
async def cleanup_creator(
    creator_id: Annotated[UUID, Query(alias="creatorId")],
    orchestrator: OrchestratorDep,
) -> ApiResponse[str]:
    """
    Delete every request of a creator.

    Intended for resetting test data. Not part of the business workflow.
    """
    settings = get_settings()
    if not settings.cleanup_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cleanup endpoint is disabled",
        )

    removed = await orchestrator.purge_by_creator(creator_id)
    logger.info(f"Cleanup removed {removed} request(s) for creator {creator_id}")
    return ApiResponse.ok("Cleanup completed.")
