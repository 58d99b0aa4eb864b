"""라우트 공통 에러 응답"""

import logging

from fastapi import HTTPException, status

from src.constants import Handle
from src.infra.storage.errors import (
    ForbiddenRootError,
    InvalidPathError,
    ObjectNotFoundError,
    SizeExceededError,
    StorageError,
)

logger = logging.getLogger(__name__)


def to_http_error(e: StorageError) -> HTTPException:
    """스토리지 예외 → HTTPException"""
    if isinstance(e, InvalidPathError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "INVALID_PATH", "message": f"유효하지 않은 파일 경로: {e}"},
        )
    if isinstance(e, SizeExceededError):
        return HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "code": "FILE_TOO_LARGE",
                "message": f"파일 크기가 제한을 초과했습니다 (최대 {e.limit} bytes)",
            },
        )
    if isinstance(e, ObjectNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "FILE_NOT_FOUND", "message": f"파일을 찾을 수 없습니다: {e.key}"},
        )
    if isinstance(e, ForbiddenRootError):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "FORBIDDEN_ROOT", "message": "storage root는 삭제할 수 없습니다"},
        )

    logger.error(f"스토리지 오류: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "STORAGE_ERROR", "message": "파일 저장소 처리 중 오류가 발생했습니다"},
    )


def check_handle(handle: str) -> None:
    """발급 형식(소문자 12자)이 아닌 handle은 storage 조회 전에 거부"""
    if not Handle.PATTERN.fullmatch(handle):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "INVALID_PATH", "message": f"유효하지 않은 handle: {handle!r}"},
        )
