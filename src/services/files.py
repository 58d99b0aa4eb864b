"""다운로드/삭제 서비스

handle + 경로를 StorageKey로 변환한 뒤 storage 백엔드를 직접 호출한다.
"""

import logging
from collections.abc import Iterator
from typing import BinaryIO

from src.constants import Limits
from src.infra.storage import get_path_resolver, get_storage
from src.infra.storage.paths import StorageKey

logger = logging.getLogger(__name__)


def open_file(handle: str, user_path: str) -> tuple[StorageKey, BinaryIO]:
    key = get_path_resolver().resolve(handle, user_path)
    stream = get_storage().open(key)
    logger.info(f"[{handle}] 다운로드: {key.relative_path}")
    return key, stream


def iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    """StreamingResponse용 청크 반복자. 끝나면 스트림을 닫는다."""
    try:
        while chunk := stream.read(Limits.BUFFER_SIZE):
            yield chunk
    finally:
        stream.close()


def delete_file(handle: str, user_path: str) -> str:
    key = get_path_resolver().resolve(handle, user_path)
    get_storage().delete(key)
    logger.info(f"[{handle}] 파일 삭제: {key.relative_path}")
    return key.relative_path


def delete_handle(handle: str) -> int:
    """handle 아래 모든 파일 삭제. 삭제한 파일 수 반환"""
    key = get_path_resolver().resolve_handle(handle)
    deleted = get_storage().delete_prefix(key)
    logger.info(f"[{handle}] handle 전체 삭제: {deleted}개")
    return deleted
