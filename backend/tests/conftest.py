"""
Shared pytest fixtures and configuration for all tests
"""
import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add backend to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4nGNgYGD4DwABBAEAwS2OUAAAAABJRU5ErkJggg=="

@pytest.fixture
def fal_client():
    """Stand-in for fal_client.AsyncClient; returns one image by default"""
    client = MagicMock()
    client.subscribe = AsyncMock(return_value={"images": [{"url": "https://fal.media/result.png"}]})
    return client

@pytest.fixture
def storage_service():
    """StorageService stand-in that materializes data URLs to a fixed public URL"""
    service = MagicMock()

    async def ensure_image_url(image_ref, folder=None):
        if image_ref.startswith("data:"):
            return "https://storage.test/source-images/uploaded.png"
        return image_ref

    service.ensure_image_url = AsyncMock(side_effect=ensure_image_url)
    return service

@pytest.fixture
def fal_service(fal_client, storage_service):
    """Provide a FalService wired to the mocked fal client and storage"""
    from services.fal_service import FalService
    return FalService(client=fal_client, storage_service=storage_service)

@pytest.fixture
def history_service():
    """Provide a HistoryService backed by an empty session cache"""
    from core import cache
    from services.history_service import HistoryService
    cache.clear_all()
    yield HistoryService(max_entries=3)
    cache.clear_all()

@pytest.fixture
def png_data_url():
    return PNG_DATA_URL

@pytest.fixture
def last_submission(fal_client):
    """Return a callable giving (model, arguments) of the last fal.ai submission"""
    def _last():
        call = fal_client.subscribe.call_args
        return call.args[0], call.kwargs["arguments"]
    return _last
