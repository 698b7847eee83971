from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # App
    app_name: str = "Video Catalog"
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = ""
    cors_origins: list[str] = ["*"]

    # Catalog: "memory" (프로세스 내부, 비영속) 또는 "database"
    catalog_backend: str = "memory"
    database_url: str = "sqlite+aiosqlite:///./videos.db"

    # dataUrl 생성용. 비어 있으면 요청의 scheme/host/port 사용
    public_base_url: str | None = None

    # Local blob storage
    storage_dir: str = "uploads"

    # AWS S3 (access key가 있으면 S3 사용)
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "ap-northeast-2"
    s3_bucket_name: str = "video-catalog"
    s3_prefix: str = "videos/"

    # Blob I/O failures are reported with this status
    storage_error_status: int = 404

    # Likes
    like_max_retries: int = 5

    # JWT (caller identity)
    secret_key: str = "CHANGE-THIS-IN-PRODUCTION"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
