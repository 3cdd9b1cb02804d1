# storefront/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # Uploaded product images live under STORAGE_DIR and are served at STORAGE_URL_PREFIX
    STORAGE_DIR: str = "static/storage"
    STORAGE_URL_PREFIX: str = "/storage"
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"
    MAX_IMAGE_BYTES: int = 2 * 1024 * 1024

    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Initial administrator created by the seeder
    ADMIN_NAME: str = "Administrator"
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "change-me-please"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra = "ignore"

settings = Settings()
