import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from config.settings import settings
from core import cache
from models.history import CreateHistoryEntryPayload, HistoryEntry, HistorySettings
from models.image_edit import EditResult, GenerateEditRequest

logger = logging.getLogger(__name__)


class HistoryService:
    """Per-session generation history, newest entry first"""

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries or settings.HISTORY_MAX_ENTRIES

    async def add_entry(self, session_id: str, payload: CreateHistoryEntryPayload) -> Tuple[bool, Optional[HistoryEntry], Optional[str]]:
        """Record a new history entry for a session"""
        try:
            if not session_id:
                return False, None, "Session ID is required"

            entry = HistoryEntry(
                id=uuid.uuid4().hex,
                created_at=datetime.now(timezone.utc),
                image_url=payload.image_url,
                prompt=payload.prompt,
                settings=payload.settings
            )
            cache.update_cached_list(cache.make_history_cache_key(session_id), [entry], self.max_entries)
            return True, entry, None

        except Exception as e:
            logger.exception("Failed to add history entry")
            return False, None, str(e)

    async def record_generation(self, session_id: str, request: GenerateEditRequest, result: EditResult) -> Tuple[bool, Optional[HistoryEntry], Optional[str]]:
        """Add the outcome of a successful generate request to the session history"""
        if not result.success:
            return False, None, "Only successful generations are recorded"

        style = request.style
        payload = CreateHistoryEntryPayload(
            image_url=result.image_url,
            prompt=request.prompt,
            settings=HistorySettings(
                size=request.size,
                sharpness=style.sharpness if style else None,
                quality=style.quality if style else None,
                orientation=style.orientation if style else None,
                lighting=style.lighting if style else None,
                model=request.model
            )
        )
        return await self.add_entry(session_id, payload)

    async def list_entries(self, session_id: str, limit: Optional[int] = None) -> Tuple[bool, List[HistoryEntry], int, Optional[str]]:
        """Get a session's history, newest first"""
        try:
            entries = cache.get_cached(cache.make_history_cache_key(session_id)) or []
            total_count = len(entries)
            if limit is not None:
                entries = entries[:limit]
            return True, list(entries), total_count, None

        except Exception as e:
            return False, [], 0, str(e)

    async def clear_history(self, session_id: str) -> Tuple[bool, int, Optional[str]]:
        """Drop every entry of a session"""
        try:
            cleared = cache.invalidate(cache.make_history_cache_key(session_id))
            logger.info("Cleared %d history entries for session %s", cleared, session_id)
            return True, cleared, None

        except Exception as e:
            return False, 0, str(e)
