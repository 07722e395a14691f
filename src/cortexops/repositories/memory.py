"""In-memory history of generated playbooks.

Dict-backed, insertion ordered, capped at ``limit`` records (oldest
dropped first). Used by the API; nothing is persisted.
"""

from __future__ import annotations

import asyncio
import uuid

from cortexops.constants import ID_HEX_LENGTH
from cortexops.models.history import HistoryRecord


class InMemoryHistoryRepository:
    """Dict-backed HistoryRepository."""

    def __init__(self, limit: int = 100) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self._limit = limit
        self._store: dict[str, HistoryRecord] = {}
        self._lock = asyncio.Lock()

    async def append(self, record: HistoryRecord) -> HistoryRecord:
        if not record.id:
            record.id = uuid.uuid4().hex[:ID_HEX_LENGTH]
        async with self._lock:
            self._store[record.id] = record
            while len(self._store) > self._limit:
                oldest = next(iter(self._store))
                del self._store[oldest]
        return record

    async def list_all(self) -> list[HistoryRecord]:
        """Newest first."""
        return list(reversed(self._store.values()))

    async def get(self, record_id: str) -> HistoryRecord | None:
        return self._store.get(record_id)

    async def remove(self, record_id: str) -> bool:
        async with self._lock:
            return self._store.pop(record_id, None) is not None

    def __len__(self) -> int:
        return len(self._store)
