"""
SQLAlchemy implementation of the request store.

Maps AnticipationRequest aggregates to AnticipationRequestRecord rows.
One store wraps one AsyncSession (session-per-request). Aggregates handed
out by the store are tracked; on commit() the ones whose fee, status or
decision changed are written back to their rows.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from anticipation.domain.exceptions import StoreFailure
from anticipation.domain.models import AnticipationRequest, AnticipationStatus
from anticipation.domain.repository import PurgeableRequestStore

from .database import AnticipationRequestRecord

logger = logging.getLogger(__name__)


def to_record(request: AnticipationRequest) -> AnticipationRequestRecord:
    """Build a new row from an aggregate."""
    return AnticipationRequestRecord(
        id=str(request.id),
        creator_id=str(request.creator_id),
        gross_amount=request.gross_amount,
        fee_rate=request.fee_rate,
        net_amount=request.net_amount,
        requested_at=request.requested_at,
        status=int(request.status),
        decision_at=request.decision_at,
    )


def to_aggregate(record: AnticipationRequestRecord) -> AnticipationRequest:
    """
    Rehydrate an aggregate from a row.

    The net amount is derived again from gross amount and fee rate
    rather than read from its rounded column.
    """
    return AnticipationRequest.restore(
        id=UUID(record.id),
        creator_id=UUID(record.creator_id),
        gross_amount=record.gross_amount,
        requested_at=record.requested_at,
        fee_rate=record.fee_rate,
        status=record.status,
        decision_at=record.decision_at,
    )


def _mutable_state(request: AnticipationRequest) -> tuple:
    return (request.fee_rate, request.status, request.decision_at)


class SqlAlchemyRequestStore(PurgeableRequestStore):
    """
    Request store backed by an async SQLAlchemy session.

    Integrity errors (a second pending row for a creator) and stale
    version errors (two decisions racing on one row) are raised as
    StoreFailure after the session is rolled back.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        # id -> (aggregate, row, state when loaded; None for new rows)
        self._tracked: dict[
            UUID, tuple[AnticipationRequest, AnticipationRequestRecord, tuple | None]
        ] = {}

    async def has_pending(self, creator_id: UUID) -> bool:
        stmt = (
            select(AnticipationRequestRecord.id)
            .where(
                AnticipationRequestRecord.creator_id == str(creator_id),
                AnticipationRequestRecord.status == int(AnticipationStatus.PENDING),
            )
            .limit(1)
        )
        async with self._translate_errors("pending check"):
            found = await self.session.scalar(stmt)
        return found is not None

    async def add(self, request: AnticipationRequest) -> None:
        record = to_record(request)
        self.session.add(record)
        self._tracked[request.id] = (request, record, None)

    async def get_by_id(self, request_id: UUID) -> AnticipationRequest | None:
        async with self._translate_errors("load by id"):
            record = await self.session.get(AnticipationRequestRecord, str(request_id))
        if record is None:
            return None
        return self._track(record)

    async def get_by_creator(self, creator_id: UUID) -> list[AnticipationRequest]:
        stmt = (
            select(AnticipationRequestRecord)
            .where(AnticipationRequestRecord.creator_id == str(creator_id))
            .order_by(AnticipationRequestRecord.requested_at.desc())
        )
        async with self._translate_errors("list by creator"):
            records = (await self.session.scalars(stmt)).all()
        return [self._track(record) for record in records]

    async def commit(self) -> None:
        for request, record, loaded in self._tracked.values():
            if loaded is not None and _mutable_state(request) == loaded:
                continue
            record.fee_rate = request.fee_rate
            record.net_amount = request.net_amount
            record.status = int(request.status)
            record.decision_at = request.decision_at

        async with self._translate_errors("commit", rollback=True):
            await self.session.commit()
        self._tracked.clear()

    async def purge(self, creator_id: UUID) -> int:
        stmt = delete(AnticipationRequestRecord).where(
            AnticipationRequestRecord.creator_id == str(creator_id)
        )
        async with self._translate_errors("purge", rollback=True):
            result = await self.session.execute(stmt)
            await self.session.commit()
        removed = result.rowcount or 0
        logger.info(f"Purged {removed} request(s) for creator {creator_id}")
        return removed

    def _track(self, record: AnticipationRequestRecord) -> AnticipationRequest:
        request = to_aggregate(record)
        self._tracked[request.id] = (request, record, _mutable_state(request))
        return request

    @asynccontextmanager
    async def _translate_errors(self, action: str, rollback: bool = False) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Request store {action} failed: {type(e).__name__}: {e}")
            if rollback:
                self._tracked.clear()
                await self.session.rollback()
            raise StoreFailure(f"Request store {action} failed") from e
