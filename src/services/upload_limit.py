"""업로드 크기 제한 (런타임 변경 가능)

관리자 API로 변경된 값을 모든 API 프로세스가 공유하도록 Redis에 보관한다.
업로드마다 최신 값을 읽으며, 키가 없으면 설정 기본값(MAX_UPLOAD_SIZE)을 사용.
Redis 장애는 BackendIOError로 감싸 라우트가 500(STORAGE_ERROR)으로 응답하게 한다.
"""

import logging
from typing import cast

import redis

from src.config import get_settings
from src.constants import RedisPrefix
from src.infra.redis import get_redis
from src.infra.storage.errors import BackendIOError

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE_KEY = f"{RedisPrefix.CONFIG}:max_upload_size"


def get_max_upload_size() -> int:
    """
    Raises:
        BackendIOError: Redis 조회 실패
    """
    try:
        data = get_redis().get(MAX_UPLOAD_SIZE_KEY)
    except redis.RedisError as e:
        logger.error(f"업로드 크기 제한 조회 실패: {e}")
        raise BackendIOError("업로드 크기 제한 조회 실패") from e

    if data is None:
        return get_settings().max_upload_size

    try:
        value = int(cast(str, data))
    except ValueError:
        logger.warning(f"잘못된 업로드 제한 값 무시: {data!r}")
        return get_settings().max_upload_size
    return value if value > 0 else get_settings().max_upload_size


def set_max_upload_size(size: int) -> int:
    if size <= 0:
        raise ValueError(f"size는 양수여야 합니다: {size}")
    try:
        get_redis().set(MAX_UPLOAD_SIZE_KEY, size)
    except redis.RedisError as e:
        logger.error(f"업로드 크기 제한 변경 실패: {e}")
        raise BackendIOError("업로드 크기 제한 변경 실패") from e
    logger.info(f"업로드 크기 제한 변경: {size} bytes")
    return size
