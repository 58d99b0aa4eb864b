from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Protocol

from src.infra.storage.paths import StorageKey


@dataclass(frozen=True)
class StoredObject:
    key: str  # root 기준 상대 경로, '/' 구분
    size: int
    last_modified: datetime  # UTC aware


class StorageBackend(Protocol):
    """파일 저장소 인터페이스. LocalDiskStorage, S3Storage 구현체로 교체 가능.

    실패 시 src.infra.storage.errors 의 StorageError 계열만 발생시킨다.
    """

    def save(self, key: StorageKey, stream: BinaryIO) -> int:
        """스트림 전체를 key에 기록하고 기록한 바이트 수 반환"""
        ...

    def open(self, key: StorageKey) -> BinaryIO: ...
    def delete(self, key: StorageKey) -> None: ...

    def delete_prefix(self, key: StorageKey) -> int:
        """handle 전체 삭제. 삭제한 객체 수 반환

        key가 root면 ForbiddenRootError, handle이 없으면 ObjectNotFoundError.
        """
        ...

    def list_objects(self, prefix: str = "") -> Iterator[StoredObject]: ...

    def remove_expired(self, cutoff: datetime) -> int:
        """cutoff 이전에 마지막으로 수정된 항목 삭제 (백엔드별 정책). 삭제 수 반환"""
        ...
