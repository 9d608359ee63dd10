"""
Anticipation request endpoints.

Handles creation, listing, approval/rejection and fee simulation.
Domain errors raised by the orchestrator are turned into 400 responses
by the exception handlers registered in the app factory.
"""

import logging
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from anticipation.api.dependencies import OrchestratorDep
from anticipation.api.schemas import (
    AnticipationResponse,
    AnticipationStatusEnum,
    ApiResponse,
    CreateAnticipationRequest,
    UpdateStatusRequest,
)
from anticipation.domain.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/anticipations", tags=["anticipations"])

ERROR_RESPONSES = {
    400: {"model": ApiResponse[None], "description": "Business rule violation"},
    500: {"model": ApiResponse[None], "description": "Internal server error"},
}


@router.post(
    "",
    response_model=ApiResponse[AnticipationResponse],
    responses=ERROR_RESPONSES,
)
async def create_anticipation(
    request: CreateAnticipationRequest,
    orchestrator: OrchestratorDep,
) -> ApiResponse[AnticipationResponse]:
    """
    Open a new anticipation request.

    **Rules:**
    1. Gross amount must be at least 100.00
    2. A creator may only have one pending request
    3. A 5% fee is retained from the gross amount
    """
    view = await orchestrator.create_request(
        creator_id=request.creator_id,
        gross_amount=request.gross_amount,
        requested_at=request.requested_at,
    )
    return ApiResponse.ok(AnticipationResponse.from_view(view))


@router.get(
    "",
    response_model=ApiResponse[list[AnticipationResponse]],
)
async def list_anticipations(
    creator_id: Annotated[UUID, Query(alias="creatorId")],
    orchestrator: OrchestratorDep,
) -> ApiResponse[list[AnticipationResponse]]:
    """List every request of a creator, newest first."""
    views = await orchestrator.list_by_creator(creator_id)
    return ApiResponse.ok([AnticipationResponse.from_view(view) for view in views])


@router.get(
    "/simulate",
    response_model=ApiResponse[AnticipationResponse],
    responses=ERROR_RESPONSES,
)
async def simulate_anticipation(
    gross_amount: Annotated[Decimal, Query(alias="grossAmount")],
    orchestrator: OrchestratorDep,
) -> ApiResponse[AnticipationResponse]:
    """
    Preview fee and net amount for a gross amount.

    **Note:** Nothing is stored. The returned id and creatorId are
    placeholders and do not refer to a persisted request.
    """
    view = await orchestrator.simulate(gross_amount)
    return ApiResponse.ok(AnticipationResponse.from_view(view))


@router.post(
    "/{request_id}/approve",
    response_model=ApiResponse[AnticipationResponse],
    responses=ERROR_RESPONSES,
)
async def approve_anticipation(
    request_id: UUID,
    orchestrator: OrchestratorDep,
) -> ApiResponse[AnticipationResponse]:
    """Approve a pending request."""
    view = await orchestrator.approve(request_id)
    return ApiResponse.ok(AnticipationResponse.from_view(view))


@router.post(
    "/{request_id}/reject",
    response_model=ApiResponse[AnticipationResponse],
    responses=ERROR_RESPONSES,
)
async def reject_anticipation(
    request_id: UUID,
    orchestrator: OrchestratorDep,
) -> ApiResponse[AnticipationResponse]:
    """Reject a pending request."""
    view = await orchestrator.reject(request_id)
    return ApiResponse.ok(AnticipationResponse.from_view(view))


@router.patch(
    "/{request_id}",
    response_model=ApiResponse[AnticipationResponse],
    responses=ERROR_RESPONSES,
)
async def update_anticipation_status(
    request_id: UUID,
    request: UpdateStatusRequest,
    orchestrator: OrchestratorDep,
) -> ApiResponse[AnticipationResponse]:
    """Approve or reject a pending request through its target status."""
    if request.status == AnticipationStatusEnum.PENDING:
        raise InvalidTransitionError("Status can only be changed to approved or rejected.")

    view = await orchestrator.decide(
        request_id,
        approve=request.status == AnticipationStatusEnum.APPROVED,
    )
    return ApiResponse.ok(AnticipationResponse.from_view(view))
