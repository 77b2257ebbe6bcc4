"""
Core Configuration using Pydantic BaseSettings
Centralizes all environment variables and configuration
"""

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application Settings"""

    # Application
    APP_NAME: str = "Docshelf"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: Optional[str] = None  # anon key, used for table access when set
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    PUBLIC_STORAGE_URL: Optional[str] = None  # defaults to SUPABASE_URL

    # S3-compatible storage (preferred over Supabase Storage when fully set)
    S3_ENDPOINT: Optional[str] = None
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_REGION: str = "us-east-2"

    # Uploads
    CHANGELOG_BUCKET: str = "changelog"
    UPLOADS_BUCKET: str = "uploads"
    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024
    DEBUG_UPLOAD: bool = False

    # Autosave windows (milliseconds)
    AUTOSAVE_CONTENT_DELAY_MS: int = 1000
    AUTOSAVE_TITLE_DELAY_MS: int = 1000
    AUTOSAVE_CATEGORY_DELAY_MS: int = 800

    # Reader
    READER_HEADER_OFFSET: int = 96

    # Listing
    DEFAULT_PAGE_SIZE: int = 12
    MAX_PAGE_SIZE: int = 100

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def s3_configured(self) -> bool:
        return bool(self.S3_ENDPOINT and self.S3_ACCESS_KEY_ID and self.S3_SECRET_ACCESS_KEY)

    @property
    def public_storage_base(self) -> Optional[str]:
        base = self.PUBLIC_STORAGE_URL or self.SUPABASE_URL
        return base.rstrip("/") if base else None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Export settings instance
settings = get_settings()
