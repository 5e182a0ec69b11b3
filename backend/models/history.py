from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class HistorySettings(BaseModel):
    """Snapshot of the editor settings used for a generation"""
    size: Optional[str] = None
    sharpness: Optional[str] = None
    quality: Optional[str] = None
    orientation: Optional[str] = None
    lighting: Optional[str] = None
    model: Optional[str] = None

class HistoryEntry(BaseModel):
    id: str
    created_at: datetime
    image_url: str
    prompt: str
    settings: HistorySettings = Field(default_factory=HistorySettings)

class CreateHistoryEntryPayload(BaseModel):
    image_url: str
    prompt: str = ""
    settings: HistorySettings = Field(default_factory=HistorySettings)

class HistoryEntryResponse(BaseModel):
    success: bool
    entry: Optional[HistoryEntry] = None
    error: Optional[str] = None

class HistoryListResponse(BaseModel):
    success: bool
    entries: List[HistoryEntry] = []
    total_count: int = 0
    error: Optional[str] = None

class HistoryClearResponse(BaseModel):
    success: bool
    cleared_count: int = 0
    error: Optional[str] = None
