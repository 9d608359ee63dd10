"""
Anticipation workflow orchestrator.

Coordinates the request lifecycle on top of a request store:
1. Creation (minimum amount, single pending request, persist)
2. Listing per creator
3. Approval / rejection
4. Fee simulation without persistence
5. Administrative purge

Business rules live in the domain aggregate; this module only
sequences them and maps results to RequestView records.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from anticipation.domain.exceptions import (
    AnticipationError,
    BelowMinimumAmountError,
    DuplicatePendingRequestError,
    NotFoundError,
)
from anticipation.domain.models import (
    MINIMUM_AMOUNT,
    AnticipationRequest,
    AnticipationStatus,
    to_decimal,
    utcnow,
)
from anticipation.domain.repository import PurgeableRequestStore, RequestStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestView:
    """Read-only projection of an anticipation request."""
    id: UUID
    creator_id: UUID
    gross_amount: Decimal
    net_amount: Decimal
    fee_rate: Decimal
    status: AnticipationStatus
    requested_at: datetime
    decision_at: datetime | None
    fee_amount: Decimal

    @classmethod
    def from_request(cls, request: AnticipationRequest) -> "RequestView":
        return cls(
            id=request.id,
            creator_id=request.creator_id,
            gross_amount=request.gross_amount,
            net_amount=request.net_amount,
            fee_rate=request.fee_rate,
            status=request.status,
            requested_at=request.requested_at,
            decision_at=request.decision_at,
            fee_amount=request.fee_amount,
        )


class AnticipationOrchestrator:
    """
    Application service for anticipation requests.

    Example:
        orchestrator = AnticipationOrchestrator(store=InMemoryRequestStore())

        view = await orchestrator.create_request(creator_id, Decimal("500"))
        view = await orchestrator.approve(view.id)
    """

    def __init__(self, store: RequestStore) -> None:
        """
        Initialize the orchestrator.

        Args:
            store: Request store used for lookups and persistence
        """
        self.store = store

    async def create_request(
        self,
        creator_id: UUID,
        gross_amount: Decimal | int | str,
        requested_at: datetime | None = None,
    ) -> RequestView:
        """
        Open a new pending request for a creator.

        Checks run in a fixed order: minimum amount (no store access),
        then the pending-request check, then aggregate construction.

        Raises:
            BelowMinimumAmountError: gross_amount is under the minimum
            DuplicatePendingRequestError: creator has an unresolved request
            InvalidAmountError: gross_amount has more than 2 decimal places
            InvalidCreatorError: creator_id is the nil UUID
        """
        amount = to_decimal(gross_amount)
        if amount < MINIMUM_AMOUNT:
            logger.warning(f"Rejected request below minimum: {amount} (creator {creator_id})")
            raise BelowMinimumAmountError(
                f"Requested amount must be at least {MINIMUM_AMOUNT:.2f}."
            )

        if await self.store.has_pending(creator_id):
            logger.warning(f"Creator {creator_id} already has a pending request")
            raise DuplicatePendingRequestError()

        request = AnticipationRequest.create(creator_id, amount, requested_at)

        await self.store.add(request)
        await self.store.commit()

        logger.info(
            f"Created request {request.id} for creator {creator_id}: "
            f"gross={request.gross_amount} net={request.net_amount}"
        )
        return RequestView.from_request(request)

    async def list_by_creator(self, creator_id: UUID) -> list[RequestView]:
        """Return every request of a creator, newest first."""
        requests = await self.store.get_by_creator(creator_id)
        return [RequestView.from_request(request) for request in requests]

    async def decide(self, request_id: UUID, approve: bool) -> RequestView:
        """
        Approve or reject a pending request.

        Raises:
            NotFoundError: no request with this id
            InvalidTransitionError: the request was already decided
        """
        request = await self.store.get_by_id(request_id)
        if request is None:
            raise NotFoundError()

        try:
            if approve:
                request.approve()
            else:
                request.reject()
        except AnticipationError as e:
            logger.warning(f"Decision on {request_id} refused: {e.message}")
            raise

        await self.store.commit()

        logger.info(f"Request {request_id} {request.status.name.lower()}")
        return RequestView.from_request(request)

    async def approve(self, request_id: UUID) -> RequestView:
        return await self.decide(request_id, approve=True)

    async def reject(self, request_id: UUID) -> RequestView:
        return await self.decide(request_id, approve=False)

    async def simulate(self, gross_amount: Decimal | int | str) -> RequestView:
        """
        Preview the fee and net amount for a gross amount.

        Builds a throwaway aggregate and never touches the store; the id
        and creator id of the returned view do not refer to anything.
        """
        preview = AnticipationRequest.create(uuid4(), gross_amount, utcnow())
        return RequestView.from_request(preview)

    async def purge_by_creator(self, creator_id: UUID) -> int:
        """
        Delete every request of a creator (test and operations utility).

        Raises:
            TypeError: the configured store does not support purging
        """
        if not isinstance(self.store, PurgeableRequestStore):
            raise TypeError(f"{type(self.store).__name__} does not support purge")
        return await self.store.purge(creator_id)
