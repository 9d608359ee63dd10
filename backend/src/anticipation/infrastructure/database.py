"""
Database configuration and session management with SQLAlchemy.

Uses async SQLAlchemy for non-blocking database operations.

Design Decisions:
- AsyncSession for non-blocking operations
- Connection pooling with sensible defaults (server databases only)
- Explicit transaction management
- Session-per-request pattern
- Optimistic concurrency through a version column
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, SmallInteger, String, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from anticipation.config import get_settings

logger = logging.getLogger(__name__)


class FixedDecimal(TypeDecorator):
    """
    Fixed-point Decimal column.

    NUMERIC on server databases. SQLite has no fixed-point storage and
    would round-trip NUMERIC through binary floats, so there the value is
    kept as its exact decimal text.
    """
    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int, scale: int) -> None:
        super().__init__(precision, scale, asdecimal=True)
        self.precision = precision
        self.scale = scale

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(40))
        return dialect.type_descriptor(Numeric(self.precision, self.scale, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value) if dialect.name == "sqlite" else value


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class AnticipationRequestRecord(Base):
    """
    Persisted row for an anticipation request.

    Amounts use fixed-point columns: 2 decimals for money, 4 for the rate.
    The net amount may carry more decimals than its column and is derived
    again on load.
    The partial unique index allows a single pending row per creator, which
    closes the race between the pending check and the insert.
    """
    __tablename__ = "anticipation_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    creator_id: Mapped[str] = mapped_column(String(36), index=True)

    gross_amount: Mapped[Decimal] = mapped_column(FixedDecimal(18, 2))
    fee_rate: Mapped[Decimal] = mapped_column(FixedDecimal(5, 4))
    net_amount: Mapped[Decimal] = mapped_column(FixedDecimal(18, 2))

    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    status: Mapped[int] = mapped_column(SmallInteger)  # 0 pending, 1 approved, 2 rejected
    decision_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index(
            "uq_anticipation_pending_creator",
            "creator_id",
            unique=True,
            sqlite_where=text("status = 0"),
            postgresql_where=text("status = 0"),
        ),
    )


# Engine and session factory (initialized lazily)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        options: dict = {"echo": settings.database_echo}
        if not settings.is_sqlite:
            options.update(pool_size=5, max_overflow=10, pool_timeout=30)
        _engine = create_async_engine(settings.database_url, **options)
        logger.info(f"Database engine created for {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory for creating database sessions."""
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        _session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session for a request.

    Usage:
        async with get_session() as session:
            session.add(record)
            await session.commit()
    """
    factory = get_session_factory()
    session = factory()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(engine: AsyncEngine | None = None) -> None:
    """
    Initialize database tables.

    Call this on application startup to ensure tables exist.
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def close_db() -> None:
    """Close database connections on shutdown."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
    logger.info("Database connections closed")
