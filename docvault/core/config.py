# docvault/core/config.py
from functools import lru_cache
from typing import List, Optional
from pydantic import AnyUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Tokens: no default secret, startup fails without one
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"

    # Password hashing cost factor (bcrypt log2 rounds)
    BCRYPT_ROUNDS: int = 12

    # Uploads
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    ALLOWED_FILE_TYPES: str = "pdf,docx,doc,jpg,jpeg,png,webp"
    MAX_JSON_BODY_BYTES: int = 1024 * 1024

    # Rate limiting, one budget per route class
    RATE_LIMIT_ENABLED: bool = True
    GLOBAL_RATE_LIMIT: int = 1000
    GLOBAL_RATE_WINDOW_SEC: int = 15 * 60
    AUTH_RATE_LIMIT: int = 50
    AUTH_RATE_WINDOW_SEC: int = 15 * 60
    UPLOAD_RATE_LIMIT: int = 100
    UPLOAD_RATE_WINDOW_SEC: int = 60

    # Database: "mongo" (beanie) or "memory"
    DATABASE_BACKEND: str = "mongo"
    MONGODB_URI: str = "mongodb://localhost:27017/document_vault"
    MONGODB_DB: str = "document_vault"

    # S3-compatible storage
    S3_BUCKET: str = "document-vault"
    S3_ENDPOINT: Optional[AnyUrl] = None
    S3_REGION: Optional[str] = None
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    S3_PUBLIC_BASE_URL: Optional[str] = None

    # Filesystem fallback when S3 is not configured
    LOCAL_UPLOAD_DIR: str = "uploads"

    # Pydantic v2 settings: read from .env file
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    @property
    def allowed_file_types(self) -> List[str]:
        return [t.strip().lower().lstrip(".") for t in self.ALLOWED_FILE_TYPES.split(",") if t.strip()]

    @property
    def s3_configured(self) -> bool:
        return bool(self.S3_ENDPOINT and self.S3_ACCESS_KEY and self.S3_SECRET_KEY)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
