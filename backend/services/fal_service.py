import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from config.settings import settings
from core.fal import get_fal_client
from models.image_edit import EditResult, GenerateEditRequest, SegmentPoint
from services.model_routing import (
    EDIT_RESULT_FIELDS,
    ERASE_RESULT_FIELDS,
    SEGMENT_RESULT_FIELDS,
    UTILITY_RESULT_FIELDS,
    ModelInput,
    Operation,
    ResultAccessor,
    build_edit_input,
    build_erase_input,
    build_inpaint_input,
    build_segmentation_input,
    build_utility_input,
    find_result_url,
    operation_for,
    select_model,
)
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

NO_IMAGE_URL_ERROR = "No image URL found in response"
NO_MASK_ERROR = "No mask generated"
NO_ERASE_IMAGE_ERROR = "No image generated from erase"
UNKNOWN_ERROR = "Unknown error"
TIMEOUT_ERROR = "Request timeout - fal.ai may be slow"
INVALID_SCALE_FACTOR_ERROR = "Upscale factor must be greater than 0"


class ResponseShapeError(Exception):
    """fal.ai answered, but without any of the expected image fields"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def extract_error_message(error: BaseException) -> str:
    """Pick the most useful message from a failed fal.ai call: message, then body.detail."""
    message = getattr(error, "message", None) or (str(error) if error.args else None)
    if message:
        return str(message)

    body = getattr(error, "body", None)
    detail = body.get("detail") if isinstance(body, dict) else getattr(body, "detail", None)
    if detail:
        return str(detail)

    return UNKNOWN_ERROR


class FalService:
    def __init__(self, client: Optional[Any] = None, storage_service: Optional[StorageService] = None):
        self.api_key = settings.FAL_KEY
        self.client = client or get_fal_client()
        self.storage_service = storage_service or StorageService()

    async def generate_edit(self, request: GenerateEditRequest) -> EditResult:
        """Standard edit, or a masked inpaint when the request carries a mask"""
        try:
            operation = operation_for(request)
            model = select_model(operation, request.model)

            if operation is Operation.INPAINT:
                image_url = await self.storage_service.ensure_image_url(request.image_urls[0])
                model_input = build_inpaint_input(image_url, request.mask_url, request.prompt)
            else:
                model_input = build_edit_input(model, request)

            image_url = await self._run(model, model_input, EDIT_RESULT_FIELDS, NO_IMAGE_URL_ERROR)
            return EditResult.succeeded(image_url)

        except Exception as error:
            return self._failure("Image generation", error)

    async def remove_background(self, image_url: str) -> EditResult:
        try:
            public_url = await self.storage_service.ensure_image_url(image_url)
            model = select_model(Operation.REMOVE_BACKGROUND)
            result_url = await self._run(
                model, build_utility_input(public_url), UTILITY_RESULT_FIELDS, NO_IMAGE_URL_ERROR
            )
            return EditResult.succeeded(result_url)

        except Exception as error:
            return self._failure("Background removal", error)

    async def upscale(self, image_url: str, scale_factor: Optional[float] = None) -> EditResult:
        try:
            factor = settings.DEFAULT_UPSCALE_FACTOR if scale_factor is None else scale_factor
            if factor <= 0:
                logger.error("Rejected upscale factor %s", factor)
                return EditResult.failed(INVALID_SCALE_FACTOR_ERROR)

            public_url = await self.storage_service.ensure_image_url(image_url)
            model = select_model(Operation.UPSCALE)
            result_url = await self._run(
                model, build_utility_input(public_url, factor), UTILITY_RESULT_FIELDS, NO_IMAGE_URL_ERROR
            )
            return EditResult.succeeded(result_url)

        except Exception as error:
            return self._failure("Upscale", error)

    async def segment_object(self, image_url: str, points: Sequence[SegmentPoint]) -> EditResult:
        """Select the object under `points`; the result URL is the mask"""
        try:
            logger.info("Segmenting object at %d point(s)", len(points))
            public_url = await self.storage_service.ensure_image_url(image_url)
            model = select_model(Operation.SEGMENT)
            mask_url = await self._run(
                model, build_segmentation_input(public_url, points), SEGMENT_RESULT_FIELDS, NO_MASK_ERROR
            )
            return EditResult.succeeded(mask_url)

        except Exception as error:
            return self._failure("Segmentation", error)

    async def erase_object(self, image_url: str, mask_url: str) -> EditResult:
        try:
            public_url = await self.storage_service.ensure_image_url(image_url)
            model = select_model(Operation.ERASE)
            result_url = await self._run(
                model, build_erase_input(public_url, mask_url), ERASE_RESULT_FIELDS, NO_ERASE_IMAGE_ERROR
            )
            return EditResult.succeeded(result_url)

        except Exception as error:
            return self._failure("Erase", error)

    async def _run(
        self,
        model: str,
        model_input: ModelInput,
        accessors: Sequence[ResultAccessor],
        missing_message: str,
    ) -> str:
        data = await self._submit(model, model_input)
        url = find_result_url(data, accessors)
        if not url:
            logger.error("No usable URL in %s response: %s", model, data)
            raise ResponseShapeError(missing_message)
        return url

    async def _submit(self, model: str, model_input: ModelInput) -> Dict[str, Any]:
        logger.info("Submitting %s request to %s", model_input.kind, model)
        result = await self.client.subscribe(
            model,
            arguments=model_input.to_arguments(),
            with_logs=True,
            on_queue_update=self._log_queue_update,
        )
        logger.debug("Result from %s: %s", model, result)
        return result or {}

    @staticmethod
    def _log_queue_update(update) -> None:
        logger.debug("Queue update: %s", update)
        for log in getattr(update, "logs", None) or []:
            message = log.get("message") if isinstance(log, dict) else log
            logger.debug("fal: %s", message)

    @staticmethod
    def _failure(action: str, error: Exception) -> EditResult:
        if isinstance(error, httpx.TimeoutException):
            logger.error("%s timed out: %s", action, error)
            return EditResult.failed(TIMEOUT_ERROR)

        if isinstance(error, ResponseShapeError):
            logger.error("%s failed: %s", action, error.message)
        else:
            logger.exception("%s failed", action)
        return EditResult.failed(extract_error_message(error))

