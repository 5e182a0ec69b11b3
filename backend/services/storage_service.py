from typing import Optional, Tuple
import asyncio
import base64
import binascii
import logging
import uuid
from datetime import datetime

from config.settings import settings
from core.supabase import get_supabase

logger = logging.getLogger(__name__)

UPLOAD_FAILED_MESSAGE = "Failed to upload local image for processing"

EXTENSION_MAP = {
    'image/png': 'png',
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/gif': 'gif',
    'image/webp': 'webp'
}


class ImageUploadError(Exception):
    """A local image could not be materialized to a public URL"""

    def __init__(self, message: str = UPLOAD_FAILED_MESSAGE):
        super().__init__(message)
        self.message = message


def is_data_url(image_ref: str) -> bool:
    return image_ref.startswith('data:')


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a base64 data URL into its mime type and decoded bytes"""
    if not is_data_url(data_url) or ',' not in data_url:
        raise ValueError("Invalid data URL format - expected data:<mime>;base64,<payload>")

    header, payload = data_url.split(',', 1)
    meta = header[len('data:'):].split(';')
    if 'base64' not in meta[1:]:
        raise ValueError("Only base64 encoded data URLs are supported")

    mime_type = meta[0] or 'image/png'
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as error:
        raise ValueError(f"Invalid base64 payload: {error}") from error

    if not content:
        raise ValueError("Data URL payload is empty")
    return mime_type, content


class StorageService:
    def __init__(self, supabase=None, bucket: Optional[str] = None):
        self._supabase = supabase
        self.bucket = bucket or settings.STORAGE_BUCKET_IMAGES

    @property
    def supabase(self):
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    async def upload_image_from_data_url(self, data_url: str, folder: str = "images") -> Tuple[bool, Optional[str], Optional[str]]:
        """Upload an image from base64 data URL to Supabase Storage"""
        try:
            mime_type, image_bytes = parse_data_url(data_url)
            extension = EXTENSION_MAP.get(mime_type, 'png')

            # Generate storage path
            timestamp = datetime.now().strftime('%Y-%m-%d')
            unique_id = str(uuid.uuid4())[:8]
            storage_path = f"{folder}/{timestamp}/{unique_id}.{extension}"

            logger.info("[STORAGE] Uploading %d bytes to %s/%s", len(image_bytes), self.bucket, storage_path)

            upload_response = await asyncio.to_thread(
                lambda: self.supabase.storage
                .from_(self.bucket)
                .upload(
                    storage_path,
                    image_bytes,
                    file_options={'content-type': mime_type, 'upsert': 'true'}
                )
            )

            # Check for upload errors with different response formats
            if getattr(upload_response, 'error', None):
                raise Exception(f"Failed to upload to Supabase Storage: {upload_response.error}")
            elif isinstance(upload_response, dict) and upload_response.get('error'):
                raise Exception(f"Failed to upload to Supabase Storage: {upload_response['error']}")
            elif getattr(upload_response, 'status_code', 200) >= 400:
                raise Exception(f"Failed to upload to Supabase Storage: HTTP {upload_response.status_code}")
            elif not upload_response:
                raise Exception("Upload failed: No response from Supabase Storage")

            url_response = await asyncio.to_thread(
                lambda: self.supabase.storage.from_(self.bucket).get_public_url(storage_path)
            )
            public_url = self._extract_public_url(url_response)
            if not public_url:
                raise Exception("Failed to get public URL from Supabase Storage")

            return True, public_url, None

        except Exception as error:
            logger.error("[STORAGE] Data URL upload failed: %s", error)
            return False, None, str(error)

    async def ensure_image_url(self, image_ref: str, folder: Optional[str] = None) -> str:
        """
        Return a URL remote models can fetch for `image_ref`.

        Data URLs are uploaded once and replaced with their public URL;
        anything else is already fetchable and is returned as is.

        Raises:
            ImageUploadError: the data URL could not be uploaded
        """
        if not is_data_url(image_ref):
            return image_ref

        success, public_url, error = await self.upload_image_from_data_url(
            image_ref, folder or settings.STORAGE_FOLDER_SOURCES
        )
        if not success or not public_url:
            logger.error("[STORAGE] Could not materialize local image: %s", error)
            raise ImageUploadError()

        return public_url

    @staticmethod
    def _extract_public_url(url_response) -> Optional[str]:
        # supabase-py has returned str, dict and response objects across versions
        if isinstance(url_response, str):
            return url_response.rstrip('?') or None
        if isinstance(url_response, dict):
            return url_response.get('publicUrl') or url_response.get('public_url')
        data = getattr(url_response, 'data', None)
        if isinstance(data, dict):
            return data.get('publicUrl')
        if data:
            return str(data)
        return None
