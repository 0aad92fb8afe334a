"""Configuration management for Family Archive.

Settings are loaded from environment variables (and a ``.env`` file when
present) and exposed to the Quart app through the config classes below.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load .env file if it exists
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    database_url: str = "sqlite:///./family_archive.db"
    upload_dir: Path = Path("./uploads")

    # Logging
    log_level: str = "INFO"

    # OCR
    ocr_languages: str = "ara+eng"
    tesseract_config: str = "--psm 3"

    # HTTP
    max_upload_mb: int = 50
    cors_origins: list[str] = [
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",  # Alternative dev port
    ]

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()


class Config:
    """Base configuration."""

    # App settings
    DEBUG = True
    TESTING = False
    SECRET_KEY = "dev-secret-key-change-in-production"

    # CORS settings
    CORS_ORIGINS = settings.cors_origins

    # Database
    DATABASE_URL = settings.database_url

    # File upload settings
    MAX_CONTENT_LENGTH = settings.max_upload_mb * 1024 * 1024
    UPLOAD_FOLDER = settings.upload_dir
    DOCUMENT_EXTENSIONS = {".pdf", ".png", ".jpg", ".jpeg", ".gif", ".tiff", ".tif", ".bmp", ".txt"}
    PHOTO_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
    MAX_PHOTOS_PER_UPLOAD = 10

    # OCR settings
    OCR_LANGUAGES = settings.ocr_languages
    TESSERACT_CONFIG = settings.tesseract_config

    LOG_LEVEL = settings.log_level


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DATABASE_URL = "sqlite://"
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    # In production, load from environment variables
    SECRET_KEY = None  # Set via env var


# Config factory
def get_config(env: str = "development") -> Config:
    """Get configuration based on environment.

    Args:
        env: Environment name (development, testing, production)

    Returns:
        Configuration object
    """
    configs = {
        "development": DevelopmentConfig,
        "testing": TestingConfig,
        "production": ProductionConfig,
    }
    return configs.get(env, DevelopmentConfig)()
