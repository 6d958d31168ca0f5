from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "treasure-hunt-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Treasure Hunt")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/treasure_hunt_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "treasure-hunt-uploads-dev")
    # Base for durable image URLs; defaults to the S3 endpoint itself
    media_public_base_url: str = os.getenv("MEDIA_PUBLIC_BASE_URL", "")
    max_image_bytes: int = int(os.getenv("MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))

    # Bearer tokens are issued elsewhere; we only verify them
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_alg: str = os.getenv("JWT_ALG", "HS256")
    admin_role: str = os.getenv("ADMIN_ROLE", "admin")

    # Clients re-fetch progress on this interval while reviews are in flight
    progress_poll_seconds: int = int(os.getenv("PROGRESS_POLL_SECONDS", "10"))
    # Schedule the auto-close job at hunt end_time (needs an RQ worker --with-scheduler)
    schedule_hunt_close: bool = os.getenv("SCHEDULE_HUNT_CLOSE", "1") == "1"

settings = Settings()
