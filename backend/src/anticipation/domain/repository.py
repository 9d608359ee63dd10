"""
Persistence contract for anticipation requests.

The domain only depends on these abstract interfaces. Concrete stores
(in-memory, SQLAlchemy) live in the infrastructure package.

Implementations must make "check pending then insert" and
"load, transition, save" atomic at commit time, e.g. through a
uniqueness constraint, a transaction or a version check.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from .models import AnticipationRequest


class RequestStore(ABC):
    """Abstract interface for storing anticipation requests."""

    @abstractmethod
    async def has_pending(self, creator_id: UUID) -> bool:
        """Check whether the creator has a request still awaiting a decision."""
        pass

    @abstractmethod
    async def add(self, request: AnticipationRequest) -> None:
        """Stage a new request. It becomes durable on commit()."""
        pass

    @abstractmethod
    async def get_by_id(self, request_id: UUID) -> AnticipationRequest | None:
        """Load a request by id. Returns None if it does not exist."""
        pass

    @abstractmethod
    async def get_by_creator(self, creator_id: UUID) -> list[AnticipationRequest]:
        """Load every request of a creator, newest requested_at first."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Persist staged additions and changes to loaded requests."""
        pass


class PurgeableRequestStore(RequestStore):
    """
    Request store with the administrative bulk delete.

    Kept apart from RequestStore so production wiring can hand out
    a store without it.
    """

    @abstractmethod
    async def purge(self, creator_id: UUID) -> int:
        """Delete every request of a creator. Returns the number removed."""
        pass
