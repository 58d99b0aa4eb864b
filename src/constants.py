import re
import string


class Handle:
    ALPHABET = string.ascii_lowercase
    LENGTH = 12
    PATTERN = re.compile(r"^[a-z]{12}$")


class Limits:
    MAX_PATH_LENGTH = 255
    BUFFER_SIZE = 16 * 1024  # 16KiB
    SPOOL_MEMORY = 1024 * 1024  # PUT 본문 스풀링 시 메모리 상한, 초과분은 디스크


class Permissions:
    DIR = 0o750
    FILE = 0o640


class RedisPrefix:
    CONFIG = "config"


class StorageType:
    LOCAL = "local"
    S3 = "s3"


class TTL:
    CELERY_RESULT = 60 * 60  # 1시간
