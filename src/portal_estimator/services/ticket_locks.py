"""Per-ticket serialization of estimate recomputation."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class TicketLockRegistry:
    """Hands out one asyncio.Lock per ticket id.

    Entries are dropped once no coroutine holds or waits for them.

    Usage:
        locks = TicketLockRegistry()
        async with locks.lock(ticket_id):
            ...
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def lock(self, ticket_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(ticket_id, asyncio.Lock())
        self._waiters[ticket_id] = self._waiters.get(ticket_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[ticket_id] -= 1
            if self._waiters[ticket_id] == 0:
                del self._waiters[ticket_id]
                del self._locks[ticket_id]

    def is_locked(self, ticket_id: str) -> bool:
        lock = self._locks.get(ticket_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
