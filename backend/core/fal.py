import fal_client
from typing import Optional

from config.settings import settings

class FalClient:
    _instance: Optional[fal_client.AsyncClient] = None

    @classmethod
    def get_client(cls) -> fal_client.AsyncClient:
        # One client per process so every request shares its connection pool
        if cls._instance is None:
            cls._instance = fal_client.AsyncClient(key=settings.FAL_KEY)

        return cls._instance

# Convenience function to get the client
def get_fal_client() -> fal_client.AsyncClient:
    return FalClient.get_client()
