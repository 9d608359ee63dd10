"""
Shared pytest fixtures for the anticipation test suite.

- Identifiers (creator_id)
- Stores (memory_store, sqlite_session_factory)
- Orchestrator bound to the in-memory store
- HTTP clients over the ASGI app (in-memory or SQLite-backed store)
"""

from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from anticipation.api.dependencies import get_request_store
from anticipation.config import get_settings
from anticipation.infrastructure.database import init_db
from anticipation.infrastructure.memory import InMemoryRequestStore
from anticipation.infrastructure.repository import SqlAlchemyRequestStore
from anticipation.services.anticipation import AnticipationOrchestrator


@pytest.fixture
def creator_id() -> UUID:
    return UUID("3fa85f64-5717-4562-b3fc-2c963f66afa6")


@pytest.fixture
def other_creator_id() -> UUID:
    return uuid4()


@pytest.fixture
def memory_store() -> InMemoryRequestStore:
    return InMemoryRequestStore()


@pytest.fixture
def orchestrator(memory_store: InMemoryRequestStore) -> AnticipationOrchestrator:
    return AnticipationOrchestrator(store=memory_store)


# ============================================================================
# SQLite
# ============================================================================

@pytest_asyncio.fixture
async def sqlite_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a fresh file database (one connection per session)."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'anticipation.db'}")
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def app(memory_store: InMemoryRequestStore, monkeypatch):
    """App with cleanup enabled and the in-memory store injected."""
    monkeypatch.setenv("ENABLE_CLEANUP", "true")
    monkeypatch.setenv("DEBUG", "false")
    get_settings.cache_clear()

    from anticipation.main import create_app

    application = create_app()
    application.dependency_overrides[get_request_store] = memory_store.session
    yield application
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest_asyncio.fixture
async def sqlite_client(app, sqlite_session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client whose requests each open a SQLAlchemy store on the SQLite database."""

    async def sqlite_store() -> AsyncGenerator[SqlAlchemyRequestStore, None]:
        async with sqlite_session_factory() as session:
            yield SqlAlchemyRequestStore(session)

    app.dependency_overrides[get_request_store] = sqlite_store
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
