"""서버 설정 조회/변경 API 라우트"""

import asyncio
import logging
import secrets
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, status

from src.config import get_settings
from src.infra.storage.errors import StorageError
from src.routes.errors import to_http_error
from src.schemas.base import BaseSchema
from src.services import upload_limit as upload_limit_service
from src.services.cleanup import RetentionPolicy

router = APIRouter(prefix="/config", tags=["config"])
logger = logging.getLogger(__name__)


class MaxUploadSizeResponse(BaseSchema):
    max_upload_size: int


class RetentionPolicyResponse(BaseSchema):
    retention_seconds: int
    storage_type: str
    auto_cleanup: bool


class ServerYearResponse(BaseSchema):
    year: int


def _check_password(password: str) -> None:
    """CONFIG_API_PASSWORD가 비어 있으면 변경 API 자체를 막는다."""
    expected = get_settings().config_api_password
    if not expected or not secrets.compare_digest(password.encode(), expected.encode()):
        logger.warning("업로드 크기 제한 변경 요청 거부: 인증 실패")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHORIZED", "message": "인증에 실패했습니다"},
        )


def _parse_size(size: str) -> int:
    try:
        value = int(size)
    except ValueError:
        value = 0
    if value <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "INVALID_SIZE", "message": f"유효하지 않은 크기 값: {size!r}"},
        )
    return value


@router.get("/max_upload_size", response_model=MaxUploadSizeResponse)
async def get_max_upload_size() -> MaxUploadSizeResponse:
    try:
        size = await asyncio.to_thread(upload_limit_service.get_max_upload_size)
    except StorageError as e:
        raise to_http_error(e) from None
    return MaxUploadSizeResponse(max_upload_size=size)


@router.get("/set_max_upload_size", response_model=MaxUploadSizeResponse)
async def set_max_upload_size(password: str = "", size: str = "") -> MaxUploadSizeResponse:
    """업로드 크기 제한 변경 (관리자 전용, 모든 API 프로세스에 즉시 반영)"""
    _check_password(password)
    value = _parse_size(size)

    try:
        updated = await asyncio.to_thread(upload_limit_service.set_max_upload_size, value)
    except StorageError as e:
        raise to_http_error(e) from None
    return MaxUploadSizeResponse(max_upload_size=updated)


@router.get("/retention_policy", response_model=RetentionPolicyResponse)
async def get_retention_policy() -> RetentionPolicyResponse:
    settings = get_settings()
    policy = RetentionPolicy(
        retention_seconds=settings.retention_seconds,
        interval_seconds=settings.cleanup_interval_seconds,
    )
    return RetentionPolicyResponse(
        retention_seconds=settings.retention_seconds,
        storage_type=settings.storage_type,
        auto_cleanup=policy.enabled,
    )


@router.get("/server_year", response_model=ServerYearResponse)
async def get_server_year() -> ServerYearResponse:
    return ServerYearResponse(year=datetime.now(UTC).year)
