"""Correlation table for outstanding requests.

Maps request ids to pending-request records. A record moves through:

    reserved (unfulfilled) -> fulfilled -> removed (consumed)
    reserved (unfulfilled) -> removed (timed out / cancelled)

The inbound dispatcher only ever fulfills; the waiting requester only ever
removes. A fulfilled payload is handed out at most once.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Reply:
    """A consumed reply payload.

    Boxed so that a `None` payload is distinguishable from "not yet".
    """

    payload: Any


@dataclass
class PendingRequest:
    """A correlated request waiting for its reply."""

    request_id: str
    future: asyncio.Future[Any]
    created_at: float = field(default_factory=lambda: asyncio.get_running_loop().time())

    @property
    def fulfilled(self) -> bool:
        return self.future.done() and not self.future.cancelled()


class CorrelationTable:
    """Outstanding requests of one requester, keyed by id.

    Owned by a single Requester. All access happens on the event loop
    thread, so mutations never interleave within a method.
    """

    def __init__(self) -> None:
        self._pending: dict[str, PendingRequest] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def exists(self, request_id: str) -> bool:
        """Check whether an id is currently reserved (fulfilled or not)."""
        return request_id in self._pending

    def reserve(self, request_id: str) -> PendingRequest:
        """Register a new outstanding request in the unfulfilled state.

        Raises:
            ValueError: If the id is already reserved
        """
        if request_id in self._pending:
            raise ValueError(f"Request id already reserved: {request_id}")

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        record = PendingRequest(request_id=request_id, future=future)
        self._pending[request_id] = record
        return record

    def fulfill(self, request_id: str, payload: Any) -> bool:
        """Deposit a reply for a reserved id.

        Returns:
            True if the record was unfulfilled and now holds the payload,
            False for unknown, consumed, or already fulfilled ids
        """
        record = self._pending.get(request_id)
        if record is None or record.future.done():
            return False

        record.future.set_result(payload)
        return True

    def consume(self, request_id: str) -> Reply | None:
        """Remove and return a fulfilled reply, or None if not fulfilled yet."""
        record = self._pending.get(request_id)
        if record is None or not record.fulfilled:
            return None

        del self._pending[request_id]
        return Reply(record.future.result())

    def discard(self, request_id: str) -> bool:
        """Remove a reservation regardless of its state.

        Returns:
            True if a record was removed
        """
        record = self._pending.pop(request_id, None)
        if record is None:
            return False

        if not record.future.done():
            record.future.cancel()
        return True

    async def wait(self, request_id: str) -> None:
        """Suspend until the reserved id is fulfilled.

        Cancelling the waiter (e.g. from `asyncio.wait_for`) leaves the
        record untouched; removal is the caller's job.

        Raises:
            KeyError: If the id is not reserved
        """
        record = self._pending[request_id]
        await asyncio.shield(record.future)
