"""
In-memory request store.

Used by the test suite and for running the API without a database.
Rows are kept as deep copies so callers never hold a reference to the
stored state; changes only become visible after commit().
"""

import asyncio
import copy
import logging
from uuid import UUID

from anticipation.domain.exceptions import StoreFailure
from anticipation.domain.models import AnticipationRequest, AnticipationStatus
from anticipation.domain.repository import PurgeableRequestStore

logger = logging.getLogger(__name__)


class InMemoryRequestStore(PurgeableRequestStore):
    """
    Dictionary-backed store with unit-of-work semantics.

    Requests handed out by get_by_id/get_by_creator and requests passed
    to add() are tracked; commit() writes all of them back at once.

    Commit enforces the same guarantees a database store gets from its
    constraints:
    - at most one pending request per creator
    - a request whose status changed since it was loaded is not overwritten
    """

    def __init__(
        self,
        rows: dict[UUID, AnticipationRequest] | None = None,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._rows: dict[UUID, AnticipationRequest] = rows if rows is not None else {}
        # id -> (working copy, status observed when loaded; None for new rows)
        self._tracked: dict[UUID, tuple[AnticipationRequest, AnticipationStatus | None]] = {}
        self._lock = lock or asyncio.Lock()

    def session(self) -> "InMemoryRequestStore":
        """Open another unit of work over the same rows."""
        return InMemoryRequestStore(rows=self._rows, lock=self._lock)

    async def has_pending(self, creator_id: UUID) -> bool:
        return any(
            row.creator_id == creator_id and row.is_pending
            for row in self._rows.values()
        )

    async def add(self, request: AnticipationRequest) -> None:
        self._tracked[request.id] = (request, None)

    async def get_by_id(self, request_id: UUID) -> AnticipationRequest | None:
        stored = self._rows.get(request_id)
        if stored is None:
            return None
        return self._track(stored)

    async def get_by_creator(self, creator_id: UUID) -> list[AnticipationRequest]:
        rows = [row for row in self._rows.values() if row.creator_id == creator_id]
        rows.sort(key=lambda row: row.requested_at, reverse=True)
        return [self._track(row) for row in rows]

    async def commit(self) -> None:
        async with self._lock:
            pending = dict(self._tracked)
            self._tracked.clear()

            staged = dict(self._rows)
            for request_id, (request, loaded_status) in pending.items():
                current = self._rows.get(request_id)
                if loaded_status is not None:
                    if current is None or current.status != loaded_status:
                        raise StoreFailure(
                            f"Request {request_id} was modified concurrently"
                        )
                elif current is not None:
                    raise StoreFailure(f"Request {request_id} already exists")
                staged[request_id] = copy.deepcopy(request)

            self._check_single_pending(staged)
            self._rows.clear()
            self._rows.update(staged)

    async def purge(self, creator_id: UUID) -> int:
        async with self._lock:
            doomed = [
                request_id
                for request_id, row in self._rows.items()
                if row.creator_id == creator_id
            ]
            for request_id in doomed:
                del self._rows[request_id]
                self._tracked.pop(request_id, None)
        logger.info(f"Purged {len(doomed)} request(s) for creator {creator_id}")
        return len(doomed)

    def __len__(self) -> int:
        return len(self._rows)

    def _track(self, stored: AnticipationRequest) -> AnticipationRequest:
        working = copy.deepcopy(stored)
        self._tracked[working.id] = (working, stored.status)
        return working

    @staticmethod
    def _check_single_pending(rows: dict[UUID, AnticipationRequest]) -> None:
        seen: set[UUID] = set()
        for row in rows.values():
            if not row.is_pending:
                continue
            if row.creator_id in seen:
                raise StoreFailure(
                    f"Creator {row.creator_id} would have more than one pending request"
                )
            seen.add(row.creator_id)
