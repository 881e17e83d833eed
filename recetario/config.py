"""
Configuration management for recetario service.

Loads and validates environment variables for the application.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # Service Configuration
    APP_NAME: str = "Recetario Service"
    SERVICE_NAME: str = "recetario-service"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8020

    # Supabase Configuration
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    SUPABASE_JWT_SECRET: str = ""
    SUPABASE_JWT_AUDIENCE: str = "authenticated"

    # Storage buckets
    STORAGE_BUCKET: str = "recetas-fotos"
    AVATAR_BUCKET: str = "avatars"

    # Upload limits
    MAX_RECIPE_PHOTO_BYTES: int = 5 * 1024 * 1024
    MAX_AVATAR_BYTES: int = 2 * 1024 * 1024
    MAX_RECIPE_PHOTO_WIDTH: int = 2000
    MAX_RECIPE_PHOTO_HEIGHT: int = 2000
    MAX_AVATAR_WIDTH: int = 800
    MAX_AVATAR_HEIGHT: int = 800

    # Feed and search
    FEED_PAGE_SIZE: int = 5
    SEARCH_RPC_NAME: str = "search_recetas"
    SEARCH_RPC_LIMIT: int = 50
    SEARCH_FALLBACK_LIMIT: int = 200

    # CORS Configuration (comma-separated string)
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8788"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def get_cors_origins(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def supabase_key(self) -> str:
        """Service key when available, anon key otherwise."""
        return self.SUPABASE_SERVICE_KEY or self.SUPABASE_ANON_KEY


# Global settings instance
settings = Settings()
