"""
Tests for SqlAlchemyRequestStore against a SQLite file database.

Each store gets its own session, mirroring one session per HTTP request.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from anticipation.domain.exceptions import (
    DuplicatePendingRequestError,
    InvalidAmountError,
    InvalidFeeRateError,
    StoreFailure,
)
from anticipation.domain.models import AnticipationRequest, AnticipationStatus
from anticipation.infrastructure.database import AnticipationRequestRecord
from anticipation.infrastructure.repository import SqlAlchemyRequestStore
from anticipation.services.anticipation import AnticipationOrchestrator

SessionFactory = async_sessionmaker[AsyncSession]


async def _save(factory: SessionFactory, request: AnticipationRequest) -> None:
    async with factory() as session:
        store = SqlAlchemyRequestStore(session)
        await store.add(request)
        await store.commit()


async def test_round_trip(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    requested_at = datetime(2025, 4, 10, 9, 15, 30, 123456, tzinfo=timezone.utc)
    request = AnticipationRequest.create(creator_id, Decimal("500"), requested_at)
    await _save(sqlite_session_factory, request)

    async with sqlite_session_factory() as session:
        loaded = await SqlAlchemyRequestStore(session).get_by_id(request.id)

    assert loaded is not None
    assert loaded.id == request.id
    assert loaded.creator_id == creator_id
    assert loaded.gross_amount == Decimal("500")
    assert loaded.fee_rate == Decimal("0.05")
    assert loaded.net_amount == Decimal("475.00")
    assert loaded.status == AnticipationStatus.PENDING
    assert loaded.requested_at == requested_at
    assert loaded.decision_at is None


async def test_unknown_id_returns_none(sqlite_session_factory: SessionFactory) -> None:
    async with sqlite_session_factory() as session:
        assert await SqlAlchemyRequestStore(session).get_by_id(uuid4()) is None


async def test_has_pending(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    request = AnticipationRequest.create(creator_id, Decimal("500"))
    await _save(sqlite_session_factory, request)

    async with sqlite_session_factory() as session:
        store = SqlAlchemyRequestStore(session)
        assert await store.has_pending(creator_id)
        assert not await store.has_pending(uuid4())

        loaded = await store.get_by_id(request.id)
        loaded.approve()
        await store.commit()

        assert not await store.has_pending(creator_id)


async def test_decision_is_persisted(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    request = AnticipationRequest.create(creator_id, Decimal("500"))
    await _save(sqlite_session_factory, request)

    async with sqlite_session_factory() as session:
        store = SqlAlchemyRequestStore(session)
        loaded = await store.get_by_id(request.id)
        loaded.reject()
        await store.commit()

    async with sqlite_session_factory() as session:
        reloaded = await SqlAlchemyRequestStore(session).get_by_id(request.id)

    assert reloaded.status == AnticipationStatus.REJECTED
    assert reloaded.decision_at == loaded.decision_at


async def test_get_by_creator_newest_first(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for days in (0, 5, 2):
        request = AnticipationRequest.create(creator_id, Decimal("150"), base + timedelta(days=days))
        request.approve()
        await _save(sqlite_session_factory, request)
    await _save(sqlite_session_factory, AnticipationRequest.create(uuid4(), Decimal("150")))

    async with sqlite_session_factory() as session:
        rows = await SqlAlchemyRequestStore(session).get_by_creator(creator_id)

    assert [row.requested_at for row in rows] == [
        base + timedelta(days=5),
        base + timedelta(days=2),
        base,
    ]


async def test_recalculated_fee_is_persisted(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    request = AnticipationRequest.create(creator_id, Decimal("1000"))
    await _save(sqlite_session_factory, request)

    async with sqlite_session_factory() as session:
        store = SqlAlchemyRequestStore(session)
        loaded = await store.get_by_id(request.id)
        loaded.recalculate_fee(Decimal("0.0325"))
        await store.commit()

    async with sqlite_session_factory() as session:
        reloaded = await SqlAlchemyRequestStore(session).get_by_id(request.id)

    assert reloaded.fee_rate == Decimal("0.0325")
    assert reloaded.net_amount == Decimal("967.50")


async def test_second_pending_row_violates_constraint(
    sqlite_session_factory: SessionFactory, creator_id: UUID
) -> None:
    await _save(sqlite_session_factory, AnticipationRequest.create(creator_id, Decimal("500")))

    with pytest.raises(StoreFailure):
        await _save(sqlite_session_factory, AnticipationRequest.create(creator_id, Decimal("300")))

    async with sqlite_session_factory() as session:
        assert len(await SqlAlchemyRequestStore(session).get_by_creator(creator_id)) == 1


async def test_concurrent_decisions_conflict(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    request = AnticipationRequest.create(creator_id, Decimal("500"))
    await _save(sqlite_session_factory, request)

    async with sqlite_session_factory() as first_session, sqlite_session_factory() as second_session:
        first_store = SqlAlchemyRequestStore(first_session)
        second_store = SqlAlchemyRequestStore(second_session)

        first = await first_store.get_by_id(request.id)
        second = await second_store.get_by_id(request.id)
        first.approve()
        second.reject()

        await first_store.commit()
        with pytest.raises(StoreFailure):
            await second_store.commit()

    async with sqlite_session_factory() as session:
        final = await SqlAlchemyRequestStore(session).get_by_id(request.id)
    assert final.status == AnticipationStatus.APPROVED


async def test_purge(sqlite_session_factory: SessionFactory, creator_id: UUID, other_creator_id: UUID) -> None:
    decided = AnticipationRequest.create(creator_id, Decimal("500"))
    decided.approve()
    await _save(sqlite_session_factory, decided)
    await _save(sqlite_session_factory, AnticipationRequest.create(creator_id, Decimal("500")))
    await _save(sqlite_session_factory, AnticipationRequest.create(other_creator_id, Decimal("500")))

    async with sqlite_session_factory() as session:
        store = SqlAlchemyRequestStore(session)
        assert await store.purge(creator_id) == 2
        assert await store.purge(creator_id) == 0
        assert await store.get_by_creator(creator_id) == []
        assert len(await store.get_by_creator(other_creator_id)) == 1


async def test_orchestrator_end_to_end(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    async with sqlite_session_factory() as session:
        created = await AnticipationOrchestrator(SqlAlchemyRequestStore(session)).create_request(
            creator_id, Decimal("500")
        )

    async with sqlite_session_factory() as session:
        with pytest.raises(DuplicatePendingRequestError):
            await AnticipationOrchestrator(SqlAlchemyRequestStore(session)).create_request(
                creator_id, Decimal("300")
            )

    async with sqlite_session_factory() as session:
        approved = await AnticipationOrchestrator(SqlAlchemyRequestStore(session)).approve(created.id)

    assert approved.status == AnticipationStatus.APPROVED
    assert approved.net_amount == Decimal("475.00")


@pytest.mark.parametrize("gross", ["1234567890123456.78", "100.01", "100.10", "9999999999999999.99"])
async def test_amounts_survive_reload_exactly(
    sqlite_session_factory: SessionFactory, creator_id: UUID, gross: str
) -> None:
    async with sqlite_session_factory() as session:
        created = await AnticipationOrchestrator(SqlAlchemyRequestStore(session)).create_request(
            creator_id, Decimal(gross)
        )

    async with sqlite_session_factory() as session:
        [listed] = await AnticipationOrchestrator(SqlAlchemyRequestStore(session)).list_by_creator(creator_id)

    assert listed.gross_amount == created.gross_amount == Decimal(gross)
    assert listed.net_amount == created.net_amount
    assert listed.fee_amount == created.fee_amount


async def test_amount_with_extra_decimals_is_not_stored(
    sqlite_session_factory: SessionFactory, creator_id: UUID
) -> None:
    async with sqlite_session_factory() as session:
        with pytest.raises(InvalidAmountError):
            await AnticipationOrchestrator(SqlAlchemyRequestStore(session)).create_request(
                creator_id, Decimal("100.005")
            )

    async with sqlite_session_factory() as session:
        assert await SqlAlchemyRequestStore(session).get_by_creator(creator_id) == []


async def test_four_decimal_fee_survives_reload(sqlite_session_factory: SessionFactory, creator_id: UUID) -> None:
    request = AnticipationRequest.create(creator_id, Decimal("1000.55"))
    await _save(sqlite_session_factory, request)

    async with sqlite_session_factory() as session:
        store = SqlAlchemyRequestStore(session)
        loaded = await store.get_by_id(request.id)
        with pytest.raises(InvalidFeeRateError):
            loaded.recalculate_fee(Decimal("0.12345"))
        loaded.recalculate_fee(Decimal("0.1234"))
        expected_net = loaded.net_amount
        await store.commit()

    async with sqlite_session_factory() as session:
        reloaded = await SqlAlchemyRequestStore(session).get_by_id(request.id)

    assert reloaded.fee_rate == Decimal("0.1234")
    assert reloaded.net_amount == expected_net == Decimal("877.08213")


async def test_commit_after_listing_leaves_rows_untouched(
    sqlite_session_factory: SessionFactory, creator_id: UUID
) -> None:
    request = AnticipationRequest.create(creator_id, Decimal("500"))
    request.approve()
    await _save(sqlite_session_factory, request)

    async with sqlite_session_factory() as session:
        store = SqlAlchemyRequestStore(session)
        await store.get_by_creator(creator_id)
        await store.commit()

    async with sqlite_session_factory() as session:
        version = await session.scalar(
            select(AnticipationRequestRecord.version).where(
                AnticipationRequestRecord.id == str(request.id)
            )
        )
    assert version == 1
