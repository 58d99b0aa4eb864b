import redis

from src.config import get_settings


class _RedisHolder:
    client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """업로드 크기 제한 등 프로세스 간 공유 설정 저장소"""
    if _RedisHolder.client is None:
        settings = get_settings()
        _RedisHolder.client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=5,
        )
    return _RedisHolder.client


def close_redis() -> None:
    if _RedisHolder.client is not None:
        _RedisHolder.client.close()
        _RedisHolder.client = None


def set_redis(client: redis.Redis | None) -> None:
    _RedisHolder.client = client
