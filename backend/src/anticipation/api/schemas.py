"""
Pydantic schemas for API request/response validation.

These schemas define the contract between frontend and backend.
All monetary values are serialized as strings to avoid floating point issues.
JSON keys are camelCase; request bodies also accept snake_case names.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from anticipation.domain.models import AnticipationStatus
from anticipation.services.anticipation import RequestView

T = TypeVar("T")


class AnticipationStatusEnum(str, Enum):
    """Request status for API responses."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


STATUS_MAP = {
    AnticipationStatus.PENDING: AnticipationStatusEnum.PENDING,
    AnticipationStatus.APPROVED: AnticipationStatusEnum.APPROVED,
    AnticipationStatus.REJECTED: AnticipationStatusEnum.REJECTED,
}


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Request Schemas
# =============================================================================

class CreateAnticipationRequest(CamelModel):
    """Request to open a new anticipation request."""
    creator_id: UUID = Field(
        ...,
        description="Identifier of the creator asking for the anticipation",
    )
    gross_amount: Decimal = Field(
        ...,
        description="Requested amount before fee (minimum 100.00)",
    )
    requested_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("requestedAt", "createdAt", "requested_at", "created_at"),
        description="Request timestamp; defaults to the current time",
    )


class UpdateStatusRequest(CamelModel):
    """
    Request to approve or reject an anticipation request.

    The status may be given by name or by its integer code (1 approved,
    2 rejected), as older clients send it.
    """
    status: AnticipationStatusEnum = Field(
        ...,
        description="Target status: approved or rejected (or 1 / 2)",
    )

    @field_validator("status", mode="before")
    @classmethod
    def accept_status_code(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return STATUS_MAP[AnticipationStatus(value)]
        return value


# =============================================================================
# Response Schemas
# =============================================================================

class AnticipationResponse(CamelModel):
    """A single anticipation request."""
    id: UUID
    creator_id: UUID
    gross_amount: Decimal
    net_amount: Decimal
    fee_rate: Decimal
    fee_amount: Decimal
    status: AnticipationStatusEnum
    requested_at: datetime
    decision_at: datetime | None = None

    @classmethod
    def from_view(cls, view: RequestView) -> "AnticipationResponse":
        return cls(
            id=view.id,
            creator_id=view.creator_id,
            gross_amount=view.gross_amount,
            net_amount=view.net_amount,
            fee_rate=view.fee_rate,
            fee_amount=view.fee_amount,
            status=STATUS_MAP[view.status],
            requested_at=view.requested_at,
            decision_at=view.decision_at,
        )


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every API response."""
    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> "ApiResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse[T]":
        return cls(success=False, error=error)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    database: str
