"""Per-entity mutual exclusion within one process.

Transitions on the same work order (or payments on the same invoice) queue
behind each other; different entities never block one another. The version
stamps on the rows still catch races between processes.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager


class EntityLocks:
    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, kind: str, entity_id: str):
        key = f"{kind}:{entity_id}"
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)

    def held(self, kind: str, entity_id: str) -> bool:
        lock = self._locks.get(f"{kind}:{entity_id}")
        return bool(lock and lock.locked())


entity_locks = EntityLocks()
