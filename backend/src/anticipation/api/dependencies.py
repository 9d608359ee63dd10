"""
FastAPI dependencies wiring routes to the orchestrator.

One database session (and so one request store) per HTTP request.
Tests replace get_request_store through app.dependency_overrides.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends

from anticipation.domain.repository import RequestStore
from anticipation.infrastructure.database import get_session
from anticipation.infrastructure.repository import SqlAlchemyRequestStore
from anticipation.services.anticipation import AnticipationOrchestrator


async def get_request_store() -> AsyncGenerator[RequestStore, None]:
    """Open a session-scoped SQLAlchemy store for the current request."""
    async with get_session() as session:
        yield SqlAlchemyRequestStore(session)


def get_orchestrator(
    store: Annotated[RequestStore, Depends(get_request_store)],
) -> AnticipationOrchestrator:
    return AnticipationOrchestrator(store=store)


OrchestratorDep = Annotated[AnticipationOrchestrator, Depends(get_orchestrator)]
