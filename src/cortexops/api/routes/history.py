"""Generated-playbook history routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cortexops.api.dependencies import get_history
from cortexops.api.schemas import APIResponse
from cortexops.repositories.protocols import HistoryRepository

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("")
async def list_history(
    history: HistoryRepository = Depends(get_history),
) -> APIResponse:
    """Generated playbooks, newest first."""
    records = await history.list_all()
    return APIResponse(
        success=True,
        data=[r.to_dict() for r in records],
        metadata={"count": len(records)},
    )


@router.get("/{record_id}")
async def get_history_record(
    record_id: str,
    history: HistoryRepository = Depends(get_history),
) -> APIResponse:
    record = await history.get(record_id)
    if record is None:
        return APIResponse(
            success=False, error=f"History entry '{record_id}' not found"
        )
    return APIResponse(success=True, data=record.to_dict())


@router.delete("/{record_id}")
async def delete_history_record(
    record_id: str,
    history: HistoryRepository = Depends(get_history),
) -> APIResponse:
    if not await history.remove(record_id):
        return APIResponse(
            success=False, error=f"History entry '{record_id}' not found"
        )
    return APIResponse(success=True, data={"id": record_id})
