import logging

from fastapi import APIRouter

from config.settings import settings
from core.cache import get_cache_stats
from models.image_edit import (
    EditResult,
    EraseRequest,
    GenerateEditRequest,
    RemoveBackgroundRequest,
    SegmentRequest,
    UpscaleRequest
)
from services.fal_service import FalService
from services.history_service import HistoryService
from services.model_routing import DEFAULT_EDIT_MODEL

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/image-edit", tags=["image-edit"])

def get_fal_service():
    return FalService()

def get_history_service():
    return HistoryService()

@router.post("/", response_model=EditResult)
async def generate_edit(edit_request: GenerateEditRequest):
    """Edit or inpaint images through fal.ai and record the result in the session history"""
    fal_service = get_fal_service()
    result = await fal_service.generate_edit(edit_request)

    if result.success and edit_request.session_id:
        history_service = get_history_service()
        recorded, _, error = await history_service.record_generation(
            edit_request.session_id, edit_request, result
        )
        if not recorded:
            logger.warning("Could not record generation in history: %s", error)

    return result

@router.post("/remove-background", response_model=EditResult)
async def remove_background(payload: RemoveBackgroundRequest):
    """Cut the subject out of an image"""
    fal_service = get_fal_service()
    return await fal_service.remove_background(payload.image_url)

@router.post("/upscale", response_model=EditResult)
async def upscale_image(payload: UpscaleRequest):
    """Upscale an image by `scale_factor`"""
    fal_service = get_fal_service()
    return await fal_service.upscale(payload.image_url, payload.scale_factor)

@router.post("/segment", response_model=EditResult)
async def segment_object(payload: SegmentRequest):
    """Select the object under the given points; returns the mask URL"""
    fal_service = get_fal_service()
    return await fal_service.segment_object(payload.image_url, payload.points)

@router.post("/erase", response_model=EditResult)
async def erase_object(payload: EraseRequest):
    """Remove the masked object and fill in the background"""
    fal_service = get_fal_service()
    return await fal_service.erase_object(payload.image_url, payload.mask_url)

@router.get("/health")
async def check_fal_config():
    """Check if fal.ai and object storage are properly configured"""
    missing = settings.missing_required_settings()
    has_key = "FAL_KEY" not in missing

    return {
        "configured": not missing,
        "missing_settings": missing,
        "default_model": DEFAULT_EDIT_MODEL,
        "history_cache": get_cache_stats(),
        "message": "fal.ai API key configured" if has_key else "fal.ai API key not set"
    }
