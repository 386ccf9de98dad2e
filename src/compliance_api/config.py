"""
Application configuration loaded from environment variables / .env file.
"""
import warnings
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ── App ──
    APP_NAME: str = "ComplianceAI API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite:///./compliance.db"

    # ── JWT / Auth ──
    SECRET_KEY: str = "compliance-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8

    # ── CORS ──
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    # ── Object storage ──
    STORAGE_BACKEND: str = "memory"  # memory | minio
    MINIO_ENDPOINT: str = "minio:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_BUCKET: str = "compliance-documents"
    MINIO_SECURE: bool = False

    # ── Uploads ──
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50 MB

    # ── Background jobs ──
    SCHEDULER_ENABLED: bool = True
    EXPIRY_SWEEP_INTERVAL_MINUTES: int = 60

    # ── Startup data ──
    SEED_DEMO_DATA: bool = False


settings = Settings()

_DEFAULT_SECRET = "compliance-secret-key-change-in-production"
if settings.SECRET_KEY == _DEFAULT_SECRET and not settings.DEBUG:
    warnings.warn(
        "SECRET_KEY is set to the insecure default; set a strong SECRET_KEY in the environment.",
        stacklevel=1,
    )
