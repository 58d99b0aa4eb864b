import os
import tempfile
from collections.abc import Generator
from datetime import datetime
from pathlib import Path

import fakeredis
import pytest
from fastapi.testclient import TestClient

from src.infra.redis import set_redis
from src.infra.storage import set_path_resolver, set_storage
from src.infra.storage.local import LocalDiskStorage
from src.infra.storage.paths import PathResolver
from src.main import app


def set_mtime(path: Path, when: datetime) -> None:
    """파일/디렉터리 수정 시각 조작 (retention 테스트용)"""
    ts = when.timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture
def temp_storage_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def resolver(temp_storage_dir: Path) -> PathResolver:
    return PathResolver(temp_storage_dir)


@pytest.fixture
def local_storage(temp_storage_dir: Path) -> LocalDiskStorage:
    return LocalDiskStorage(base_dir=temp_storage_dir)


@pytest.fixture
def fake_redis() -> Generator[fakeredis.FakeRedis, None, None]:
    r = fakeredis.FakeRedis(decode_responses=True)
    set_redis(r)
    yield r
    set_redis(None)


@pytest.fixture
def use_local_storage(
    local_storage: LocalDiskStorage, resolver: PathResolver
) -> Generator[LocalDiskStorage, None, None]:
    set_storage(local_storage)
    set_path_resolver(resolver)
    yield local_storage
    set_storage(None)
    set_path_resolver(None)


@pytest.fixture
def client(
    use_local_storage: LocalDiskStorage, fake_redis: fakeredis.FakeRedis
) -> Generator[TestClient, None, None]:
    yield TestClient(app)
