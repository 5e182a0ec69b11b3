"""
Model routing for fal.ai image operations.

Decides which fal.ai endpoint serves a given edit intent and shapes the
input that endpoint expects. Everything in this module is pure: no network
calls and no state beyond the constant tables below.

Selection is an ordered tuple of rules evaluated top to bottom. Each rule
either returns a model identifier or ``None`` to fall through, so the first
rule that answers wins.
"""
from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from models.image_edit import GenerateEditRequest, SegmentPoint, SizePreset, StyleHints

# fal.ai model identifiers
GEMINI_FLASH_EDIT = "fal-ai/gemini-25-flash-image/edit"
FLUX_2_PRO_EDIT = "fal-ai/flux-2-pro/edit"
NANO_BANANA_PRO_EDIT = "fal-ai/nano-banana-pro/edit"
FAST_SDXL_INPAINTING = "fal-ai/fast-sdxl/inpainting"
FLUX_GENERAL_INPAINTING = "fal-ai/flux-general/inpainting"
SAM2_SEGMENTATION = "fal-ai/sam2/image"
REMBG = "fal-ai/imageutils/rembg"
CLARITY_UPSCALER = "fal-ai/clarity-upscaler"

DEFAULT_EDIT_MODEL = GEMINI_FLASH_EDIT

# Models that take every reference image through `image_urls`
MULTI_IMAGE_MODELS = frozenset({GEMINI_FLASH_EDIT, FLUX_2_PRO_EDIT, NANO_BANANA_PRO_EDIT})

# Overrides allowed to handle a mask themselves (experimental)
MASK_CAPABLE_OVERRIDES = frozenset({NANO_BANANA_PRO_EDIT})

SINGLE_IMAGE_EDIT_STRENGTH = 0.85
INPAINT_STRENGTH = 1.0
ERASE_STRENGTH = 1.0
ERASE_GUIDANCE_SCALE = 3.5
ERASE_PROMPT = "clean background, empty space, seamless removal of object, high quality"
FOREGROUND_POINT_LABEL = "1"

SIZE_PRESETS: Dict[str, Dict[str, int]] = {
    SizePreset.SQUARE_HD.value: {"width": 1024, "height": 1024},
    SizePreset.SQUARE.value: {"width": 512, "height": 512},
    SizePreset.PORTRAIT_4_3.value: {"width": 768, "height": 1024},
    SizePreset.PORTRAIT_16_9.value: {"width": 576, "height": 1024},
    SizePreset.LANDSCAPE_4_3.value: {"width": 1024, "height": 768},
    SizePreset.LANDSCAPE_16_9.value: {"width": 1024, "height": 576},
}

# Rendered in this order, each only when set
STYLE_HINT_FIELDS = ("lighting", "quality", "sharpness", "orientation")


class Operation(str, Enum):
    EDIT = "edit"
    INPAINT = "inpaint"
    SEGMENT = "segment"
    ERASE = "erase"
    REMOVE_BACKGROUND = "remove_background"
    UPSCALE = "upscale"


def operation_for(request: GenerateEditRequest) -> Operation:
    """A mask always turns a generate request into an inpaint."""
    return Operation.INPAINT if request.mask_url else Operation.EDIT


def resolve_image_size(size: Optional[str]) -> Optional[Dict[str, int]]:
    if not size:
        return None
    preset = SIZE_PRESETS.get(size)
    return dict(preset) if preset else None


def enrich_prompt(prompt: str, style: Optional[StyleHints] = None) -> str:
    """Append the set style hints to the prompt as a trailing clause."""
    if style is None:
        return prompt

    details = []
    for field in STYLE_HINT_FIELDS:
        value = getattr(style, field)
        if value:
            details.append(f"{value} {field}")

    if not details:
        return prompt
    return f"{prompt} . Style details: {', '.join(details)}."


# --- model selection -------------------------------------------------------

SelectionRule = Callable[[Operation, Optional[str]], Optional[str]]


def _keep_mask_capable_override(operation: Operation, override: Optional[str]) -> Optional[str]:
    if operation is Operation.INPAINT and override in MASK_CAPABLE_OVERRIDES:
        return override
    return None


def _force_replacing_inpainter(operation: Operation, override: Optional[str]) -> Optional[str]:
    # General edit models treat masked "replace" prompts as plain erasure
    if operation is Operation.INPAINT:
        return FAST_SDXL_INPAINTING
    return None


def _use_edit_override(operation: Operation, override: Optional[str]) -> Optional[str]:
    if operation is Operation.EDIT and override:
        return override
    return None


def _default_edit_model(operation: Operation, override: Optional[str]) -> Optional[str]:
    if operation is Operation.EDIT:
        return DEFAULT_EDIT_MODEL
    return None


FIXED_MODELS: Dict[Operation, str] = {
    Operation.SEGMENT: SAM2_SEGMENTATION,
    Operation.ERASE: FLUX_GENERAL_INPAINTING,
    Operation.REMOVE_BACKGROUND: REMBG,
    Operation.UPSCALE: CLARITY_UPSCALER,
}


def _fixed_model(operation: Operation, override: Optional[str]) -> Optional[str]:
    return FIXED_MODELS.get(operation)


MODEL_SELECTION_RULES: Sequence[SelectionRule] = (
    _keep_mask_capable_override,
    _force_replacing_inpainter,
    _use_edit_override,
    _default_edit_model,
    _fixed_model,
)


def select_model(operation: Operation, override: Optional[str] = None) -> str:
    for rule in MODEL_SELECTION_RULES:
        model = rule(operation, override)
        if model:
            return model
    raise ValueError(f"No model configured for operation '{operation.value}'")


# --- model inputs ----------------------------------------------------------

class ImageSize(BaseModel):
    width: int
    height: int


class PointPrompt(BaseModel):
    type: Literal["point"] = "point"
    x: float
    y: float
    label: str = FOREGROUND_POINT_LABEL


class _ModelInput(BaseModel):
    def to_arguments(self) -> Dict[str, Any]:
        """Render the fal.ai `arguments` mapping, leaving out unset fields."""
        return self.model_dump(exclude={"kind"}, exclude_none=True)


class MultiImageEditInput(_ModelInput):
    kind: Literal["multi_image_edit"] = "multi_image_edit"
    prompt: str
    image_urls: List[str]
    image_size: Optional[ImageSize] = None


class SingleImageEditInput(_ModelInput):
    kind: Literal["single_image_edit"] = "single_image_edit"
    prompt: str
    image_url: str
    strength: float = SINGLE_IMAGE_EDIT_STRENGTH
    image_size: Optional[ImageSize] = None


class MaskInpaintInput(_ModelInput):
    kind: Literal["mask_inpaint"] = "mask_inpaint"
    prompt: str
    image_url: str
    mask_url: str
    strength: float
    guidance_scale: Optional[float] = None


class SegmentationInput(_ModelInput):
    kind: Literal["segmentation"] = "segmentation"
    image_url: str
    prompts: List[PointPrompt]


class ImageUtilityInput(_ModelInput):
    kind: Literal["image_utility"] = "image_utility"
    image_url: str
    upscale_factor: Optional[float] = None


ModelInput = Annotated[
    Union[MultiImageEditInput, SingleImageEditInput, MaskInpaintInput, SegmentationInput, ImageUtilityInput],
    Field(discriminator="kind"),
]


def build_edit_input(model: str, request: GenerateEditRequest) -> Union[MultiImageEditInput, SingleImageEditInput]:
    prompt = enrich_prompt(request.prompt, request.style)
    image_size = resolve_image_size(request.size)

    if model in MULTI_IMAGE_MODELS:
        return MultiImageEditInput(prompt=prompt, image_urls=list(request.image_urls), image_size=image_size)

    return SingleImageEditInput(prompt=prompt, image_url=request.image_urls[0], image_size=image_size)


def build_inpaint_input(image_url: str, mask_url: str, prompt: str) -> MaskInpaintInput:
    # raw prompt, never enriched
    return MaskInpaintInput(prompt=prompt, image_url=image_url, mask_url=mask_url, strength=INPAINT_STRENGTH)


def build_erase_input(image_url: str, mask_url: str) -> MaskInpaintInput:
    return MaskInpaintInput(
        prompt=ERASE_PROMPT,
        image_url=image_url,
        mask_url=mask_url,
        strength=ERASE_STRENGTH,
        guidance_scale=ERASE_GUIDANCE_SCALE,
    )


def build_segmentation_input(image_url: str, points: Sequence[SegmentPoint]) -> SegmentationInput:
    return SegmentationInput(
        image_url=image_url,
        prompts=[PointPrompt(x=point.x, y=point.y) for point in points],
    )


def build_utility_input(image_url: str, upscale_factor: Optional[float] = None) -> ImageUtilityInput:
    return ImageUtilityInput(image_url=image_url, upscale_factor=upscale_factor)


# --- response parsing ------------------------------------------------------

ResultAccessor = Callable[[Mapping[str, Any]], Optional[str]]


def _url_of(entry: Any) -> Optional[str]:
    if isinstance(entry, Mapping):
        return entry.get("url") or None
    return None


def _first_url_of(entries: Any) -> Optional[str]:
    if isinstance(entries, list) and entries:
        return _url_of(entries[0])
    return None


def first_image(data: Mapping[str, Any]) -> Optional[str]:
    return _first_url_of(data.get("images"))


def single_image(data: Mapping[str, Any]) -> Optional[str]:
    return _url_of(data.get("image"))


def single_mask(data: Mapping[str, Any]) -> Optional[str]:
    return _url_of(data.get("mask"))


def first_mask(data: Mapping[str, Any]) -> Optional[str]:
    return _first_url_of(data.get("masks"))


EDIT_RESULT_FIELDS: Sequence[ResultAccessor] = (first_image, single_image)
SEGMENT_RESULT_FIELDS: Sequence[ResultAccessor] = (single_image, single_mask, first_mask)
ERASE_RESULT_FIELDS: Sequence[ResultAccessor] = (single_image, first_image)
UTILITY_RESULT_FIELDS: Sequence[ResultAccessor] = (single_image,)


def find_result_url(data: Any, accessors: Sequence[ResultAccessor]) -> Optional[str]:
    """Return the first non-empty URL produced by `accessors`, in order."""
    if not isinstance(data, Mapping):
        return None
    for accessor in accessors:
        url = accessor(data)
        if url:
            return url
    return None
