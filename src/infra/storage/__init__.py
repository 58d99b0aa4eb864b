"""Storage 모듈

사용법:
    from src.infra.storage import get_path_resolver, get_storage

    key = get_path_resolver().resolve(handle, "docs/report.pdf")
    with get_storage().open(key) as stream:
        ...

백엔드 선택 (.env STORAGE_TYPE):
    - "local": 로컬 디스크 (기본값)
    - "s3": S3 호환 object store ("r2"도 허용)
"""

from pathlib import Path

from src.config import get_settings
from src.constants import StorageType
from src.infra.storage.base import StorageBackend, StoredObject
from src.infra.storage.local import LocalDiskStorage
from src.infra.storage.paths import PathResolver, StorageKey

__all__ = [
    "StorageBackend",
    "StoredObject",
    "StorageKey",
    "PathResolver",
    "LocalDiskStorage",
    "get_storage",
    "set_storage",
    "get_path_resolver",
    "set_path_resolver",
]


class _StorageHolder:
    instance: StorageBackend | None = None
    resolver: PathResolver | None = None


def get_storage() -> StorageBackend:
    """설정에 따라 storage 백엔드 반환 (프로세스 수명 동안 고정)"""
    if _StorageHolder.instance is None:
        settings = get_settings()
        if settings.storage_type == StorageType.S3:
            from src.infra.storage.s3 import S3Storage, create_s3_client

            client = create_s3_client(
                endpoint_url=settings.resolved_s3_endpoint,
                region=settings.s3_region,
                access_key_id=settings.s3_access_key_id,
                secret_access_key=settings.s3_secret_access_key,
            )
            _StorageHolder.instance = S3Storage(
                client,
                bucket=settings.s3_bucket,
                strict_prefix_delete=settings.strict_prefix_delete,
            )
        elif settings.storage_type == StorageType.LOCAL:
            _StorageHolder.instance = LocalDiskStorage(base_dir=Path(settings.storage_path))
        else:
            raise ValueError(f"Unknown storage type: {settings.storage_type!r}")
    return _StorageHolder.instance


def set_storage(storage: StorageBackend | None) -> None:
    """storage 백엔드 설정 (테스트용)"""
    _StorageHolder.instance = storage


def get_path_resolver() -> PathResolver:
    if _StorageHolder.resolver is None:
        _StorageHolder.resolver = PathResolver(get_settings().storage_path)
    return _StorageHolder.resolver


def set_path_resolver(resolver: PathResolver | None) -> None:
    _StorageHolder.resolver = resolver
