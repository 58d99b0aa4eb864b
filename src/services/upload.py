"""업로드 서비스

요청 본문을 크기 제한을 적용하며 storage 백엔드로 전달한다.
제한 검사는 스트림을 읽는 도중에 이루어지므로 초과 본문은 백엔드 커밋 전에 중단된다.
"""

import logging
import tempfile
from collections.abc import AsyncIterator
from typing import IO, BinaryIO

from fastapi import UploadFile

from src.constants import Limits
from src.infra.storage import StorageBackend, get_path_resolver, get_storage
from src.infra.storage.errors import SizeExceededError
from src.infra.storage.paths import StorageKey, generate_handle
from src.schemas.base import BaseSchema
from src.services.upload_limit import get_max_upload_size

logger = logging.getLogger(__name__)


class UploadResult(BaseSchema):
    handle: str
    filepath: str
    size: int


class LimitedReader:
    """최대 limit + 1 바이트까지만 읽는 래퍼. limit을 넘는 순간 SizeExceededError."""

    def __init__(self, source: IO[bytes], limit: int) -> None:
        self._source = source
        self.limit = limit
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        remaining = self.limit + 1 - self.bytes_read
        if remaining <= 0:
            return b""
        if size is None or size < 0 or size > remaining:
            size = remaining

        chunk = self._source.read(size)
        self.bytes_read += len(chunk)
        if self.bytes_read > self.limit:
            raise SizeExceededError(self.limit)
        return chunk


class UploadWriter:
    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage

    def write(self, key: StorageKey, stream: IO[bytes], limit: int) -> int:
        """
        Returns:
            int: 기록한 바이트 수 (항상 limit 이하)

        Raises:
            SizeExceededError: 본문이 limit을 초과 (로컬 백엔드는 부분 파일 삭제 후)
            BackendIOError: 디스크/네트워크 오류
        """
        reader = LimitedReader(stream, limit)
        try:
            return self._storage.save(key, reader)  # type: ignore[arg-type]
        except SizeExceededError:
            logger.warning(f"업로드 크기 초과: {key.object_key} (최대 {limit} bytes)")
            raise


async def spool_body(chunks: AsyncIterator[bytes], limit: int) -> BinaryIO:
    """비동기 요청 본문 → 임시 파일

    limit을 넘는 바이트가 들어오면 더 받지 않고 중단한다.
    (초과 여부 판정은 이후 LimitedReader가 담당)
    디스크로 넘어간 뒤의 쓰기는 UploadFile이 스레드풀에서 처리한다.
    """
    spool = tempfile.SpooledTemporaryFile(max_size=Limits.SPOOL_MEMORY)
    upload = UploadFile(file=spool)
    received = 0
    try:
        async for chunk in chunks:
            await upload.write(chunk)
            received += len(chunk)
            if received > limit:
                break
        await upload.seek(0)
    except BaseException:
        spool.close()
        raise
    return spool  # type: ignore[return-value]


def create_upload(user_path: str, stream: IO[bytes], limit: int | None = None) -> UploadResult:
    """새 handle 아래에 파일 하나 저장

    limit을 생략하면 현재 업로드 크기 제한(Redis)을 읽는다.

    Raises:
        InvalidPathError: 경로 검증 실패
        SizeExceededError: 크기 제한 초과
        BackendIOError: 저장 실패
    """
    handle = generate_handle()
    key = get_path_resolver().resolve(handle, user_path)
    if limit is None:
        limit = get_max_upload_size()

    written = UploadWriter(get_storage()).write(key, stream, limit)
    logger.info(f"[{handle}] 업로드 완료: {key.relative_path} ({written} bytes)")

    return UploadResult(handle=handle, filepath=key.relative_path, size=written)
