from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "stagefeed-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Stagefeed")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/stagefeed_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_videos: str = os.getenv("S3_BUCKET_VIDEOS", "stagefeed-videos-dev")
    # Media exposure controls
    serve_media_via_api: bool = os.getenv("SERVE_MEDIA_VIA_API", "0") == "1"
    s3_presign_expiry_seconds: int = int(os.getenv("S3_PRESIGN_EXPIRY_SECONDS", str(60 * 60 * 24)))

    # Likes are keyed by sha256(salt:ip); rotating the salt resets every like
    like_salt: str = os.getenv("LIKE_SALT", "dev-salt")

    # Anonymous sessions
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "60"))
    refresh_ttl_min: int = int(os.getenv("REFRESH_TTL_MIN", "43200"))  # 30d

    # Uploads
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(200 * 1024 * 1024)))
    transcode_uploads: bool = os.getenv("TRANSCODE_UPLOADS", "0") == "1"
    ffmpeg_path: str = os.getenv("FFMPEG_PATH", "ffmpeg")
    transcode_timeout_seconds: int = int(os.getenv("TRANSCODE_TIMEOUT_SECONDS", "600"))

settings = Settings()
