"""Per-document write serialization

Version appends and metadata updates on the same document id run one at a
time; different document ids never contend. Idle locks are dropped so the
registry does not grow with the number of documents ever touched.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class DocumentLockRegistry:

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, document_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(document_id, asyncio.Lock())
        self._holders[document_id] = self._holders.get(document_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[document_id] -= 1
            if self._holders[document_id] == 0:
                del self._holders[document_id]
                del self._locks[document_id]

    def active_count(self) -> int:
        """Number of document ids with a holder or waiter."""
        return len(self._locks)
