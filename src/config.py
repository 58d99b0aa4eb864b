from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Storage
    storage_type: Literal["local", "s3"] = "local"
    storage_path: str = "/var/lib/xtemp-store"
    max_upload_size: int = Field(default=50 * 1024 * 1024, gt=0)  # 50MB, 런타임 변경은 Redis

    # Retention (0 이하면 cleanup 비활성)
    retention_seconds: int = 24 * 60 * 60
    cleanup_interval_seconds: int = 60 * 60
    cleanup_scheduler: Literal["inline", "celery"] = "inline"

    # S3 호환 스토리지 (AWS S3, Cloudflare R2, MinIO)
    s3_bucket: str = ""
    s3_endpoint_url: str = ""
    s3_region: str = "auto"
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    r2_account_id: str = ""
    strict_prefix_delete: bool = False

    # Admin
    config_api_password: str = ""

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"

    # Logging
    log_level: str = "INFO"

    @field_validator("storage_type", mode="before")
    @classmethod
    def normalize_storage_type(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip().lower()
            # 이전 설정값 호환: "r2"는 S3 호환 백엔드
            if v == "r2":
                return "s3"
        return v

    @property
    def resolved_s3_endpoint(self) -> str | None:
        if self.s3_endpoint_url:
            return self.s3_endpoint_url
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None


@lru_cache
def get_settings() -> Settings:
    return Settings()
