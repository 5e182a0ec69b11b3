from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # API Settings
    API_V1_STR: str = "/api"
    PROJECT_NAME: str = "Photo Edit API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server Settings
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # External APIs
    FAL_KEY: Optional[str] = None

    # Object Storage - Supabase
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None

    # Storage Configuration
    STORAGE_BUCKET_IMAGES: str = "edited-images"
    STORAGE_FOLDER_SOURCES: str = "source-images"

    # Processing Configuration
    DEFAULT_UPSCALE_FACTOR: float = 2.0

    # Session history
    HISTORY_TTL_SECONDS: int = 24 * 60 * 60  # 1 day
    HISTORY_MAX_SESSIONS: int = 1000
    HISTORY_MAX_ENTRIES: int = 100

    # CORS Settings
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173"
    ]

    def missing_required_settings(self) -> List[str]:
        """Return the names of required settings that are not configured."""
        required_fields = ["FAL_KEY", "SUPABASE_URL", "SUPABASE_KEY"]
        return [field for field in required_fields if not getattr(self, field, None)]

# Global settings instance
settings = Settings()
