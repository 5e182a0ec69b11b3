from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from enum import Enum

class SizePreset(str, Enum):
    SQUARE_HD = "square_hd"
    SQUARE = "square"
    PORTRAIT_4_3 = "portrait_4_3"
    PORTRAIT_16_9 = "portrait_16_9"
    LANDSCAPE_4_3 = "landscape_4_3"
    LANDSCAPE_16_9 = "landscape_16_9"

class StyleHints(BaseModel):
    """Optional style settings appended to the prompt of a standard edit"""
    lighting: Optional[str] = None
    quality: Optional[str] = None
    sharpness: Optional[str] = None
    orientation: Optional[str] = None

class GenerateEditRequest(BaseModel):
    image_urls: List[str] = Field(..., min_length=1, description="Source images, public URLs or data: URLs")
    prompt: str
    mask_url: Optional[str] = Field(None, description="Mask image; switches the request to inpainting")
    size: Optional[str] = Field(None, description="Size preset name, unknown presets are ignored")
    style: Optional[StyleHints] = None
    model: Optional[str] = Field(None, description="fal.ai model override")
    session_id: Optional[str] = Field(None, description="History session to record a successful result in")

class SegmentPoint(BaseModel):
    x: float
    y: float

class SegmentRequest(BaseModel):
    image_url: str
    points: List[SegmentPoint] = Field(..., min_length=1)

class EraseRequest(BaseModel):
    image_url: str
    mask_url: str

class RemoveBackgroundRequest(BaseModel):
    image_url: str

class UpscaleRequest(BaseModel):
    image_url: str
    scale_factor: Optional[float] = Field(None, gt=0, description="Defaults to DEFAULT_UPSCALE_FACTOR")

class EditResult(BaseModel):
    """Outcome of a single router operation"""
    model_config = ConfigDict(frozen=True)

    image_url: str = ""
    success: bool
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_outcome(self) -> "EditResult":
        if self.success and (not self.image_url or self.error):
            raise ValueError("A successful result needs an image_url and no error")
        if not self.success and (self.image_url or not self.error):
            raise ValueError("A failed result needs an error and no image_url")
        return self

    @classmethod
    def succeeded(cls, image_url: str) -> "EditResult":
        return cls(image_url=image_url, success=True)

    @classmethod
    def failed(cls, error: str) -> "EditResult":
        return cls(image_url="", success=False, error=error)
