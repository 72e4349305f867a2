"""
Centralized configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "qualicert-core"
    APP_VERSION: str = "0.3.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_MAX_UPLOAD_SIZE_MB: int = 5

    # Security
    ALLOWED_CONTENT_TYPES: list[str] = ["application/xml", "text/xml"]

    # NF-e master-data matching
    CLIENT_NAME_SIMILARITY_THRESHOLD: float = 0.6
    PRODUCT_MIN_SIMILARITY: float = 0.1
    PRODUCT_EXACT_MATCH_THRESHOLD: float = 0.9

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes."""
        return self.API_MAX_UPLOAD_SIZE_MB * 1024 * 1024


# Global settings instance
settings = Settings()
