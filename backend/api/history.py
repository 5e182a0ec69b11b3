from fastapi import APIRouter, Query
from typing import Optional

from models.history import (
    CreateHistoryEntryPayload,
    HistoryClearResponse,
    HistoryEntryResponse,
    HistoryListResponse
)
from services.history_service import HistoryService

router = APIRouter(prefix="/history", tags=["history"])

def get_history_service():
    return HistoryService()

@router.get("/{session_id}", response_model=HistoryListResponse)
async def list_history(session_id: str, limit: Optional[int] = Query(None, ge=1, le=100)):
    """List a session's generation history, newest first"""
    try:
        history_service = get_history_service()
        success, entries, total_count, error = await history_service.list_entries(session_id, limit)

        return HistoryListResponse(
            success=success,
            entries=entries,
            total_count=total_count,
            error=error
        )

    except Exception as e:
        return HistoryListResponse(success=False, error=str(e))

@router.post("/{session_id}", response_model=HistoryEntryResponse)
async def add_history_entry(session_id: str, payload: CreateHistoryEntryPayload):
    """Add an entry to a session's history"""
    try:
        history_service = get_history_service()
        success, entry, error = await history_service.add_entry(session_id, payload)

        return HistoryEntryResponse(success=success, entry=entry, error=error)

    except Exception as e:
        return HistoryEntryResponse(success=False, error=str(e))

@router.delete("/{session_id}", response_model=HistoryClearResponse)
async def clear_history(session_id: str):
    """Clear a session's history"""
    try:
        history_service = get_history_service()
        success, cleared_count, error = await history_service.clear_history(session_id)

        return HistoryClearResponse(success=success, cleared_count=cleared_count, error=error)

    except Exception as e:
        return HistoryClearResponse(success=False, error=str(e))
