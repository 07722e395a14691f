"""Protocol-based repository interfaces.

Implementations satisfy these protocols structurally (no inheritance).
Test doubles can be plain classes matching the same signatures.
"""

from typing import Protocol

from cortexops.models.history import HistoryRecord


class HistoryRepository(Protocol):
    async def append(self, record: HistoryRecord) -> HistoryRecord: ...
    async def list_all(self) -> list[HistoryRecord]: ...
    async def get(self, record_id: str) -> HistoryRecord | None: ...
    async def remove(self, record_id: str) -> bool: ...
