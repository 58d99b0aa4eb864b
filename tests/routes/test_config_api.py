from collections.abc import Generator
from datetime import UTC, datetime
from unittest.mock import MagicMock

import fakeredis
import pytest
import redis
from fastapi.testclient import TestClient

from src.config import get_settings
from src.infra.redis import set_redis
from src.services.upload_limit import MAX_UPLOAD_SIZE_KEY


@pytest.fixture
def admin_password(monkeypatch: pytest.MonkeyPatch) -> Generator[str, None, None]:
    get_settings.cache_clear()
    monkeypatch.setenv("CONFIG_API_PASSWORD", "s3cret")
    yield "s3cret"
    get_settings.cache_clear()


class TestMaxUploadSize:
    def test_default(self, client: TestClient) -> None:
        response = client.get("/config/max_upload_size")

        assert response.status_code == 200
        assert response.json() == {"maxUploadSize": get_settings().max_upload_size}

    def test_set(
        self, client: TestClient, fake_redis: fakeredis.FakeRedis, admin_password: str
    ) -> None:
        response = client.get(
            "/config/set_max_upload_size", params={"password": admin_password, "size": "2048"}
        )

        assert response.status_code == 200
        assert response.json() == {"maxUploadSize": 2048}
        assert fake_redis.get(MAX_UPLOAD_SIZE_KEY) == "2048"
        assert client.get("/config/max_upload_size").json() == {"maxUploadSize": 2048}

    def test_wrong_password(
        self, client: TestClient, fake_redis: fakeredis.FakeRedis, admin_password: str
    ) -> None:
        response = client.get(
            "/config/set_max_upload_size", params={"password": "nope", "size": "2048"}
        )

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"
        assert fake_redis.get(MAX_UPLOAD_SIZE_KEY) is None

    def test_password_not_configured(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        get_settings.cache_clear()
        monkeypatch.setenv("CONFIG_API_PASSWORD", "")

        response = client.get("/config/set_max_upload_size", params={"password": "", "size": "1"})

        get_settings.cache_clear()
        assert response.status_code == 401

    @pytest.mark.parametrize("size", ["", "abc", "0", "-10"])
    def test_invalid_size(self, client: TestClient, admin_password: str, size: str) -> None:
        response = client.get(
            "/config/set_max_upload_size", params={"password": admin_password, "size": size}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_SIZE"

    def test_new_limit_applies_to_uploads(
        self, client: TestClient, admin_password: str
    ) -> None:
        client.get("/config/set_max_upload_size", params={"password": admin_password, "size": "3"})

        response = client.put("/a.txt", content=b"1234")

        assert response.status_code == 413

    def test_redis_outage(self, client: TestClient, admin_password: str) -> None:
        broken = MagicMock()
        broken.get.side_effect = redis.ConnectionError("Connection refused")
        broken.set.side_effect = redis.ConnectionError("Connection refused")
        set_redis(broken)

        read = client.get("/config/max_upload_size")
        write = client.get(
            "/config/set_max_upload_size", params={"password": admin_password, "size": "10"}
        )

        assert read.status_code == 500
        assert read.json()["detail"]["code"] == "STORAGE_ERROR"
        assert write.status_code == 500
        assert write.json()["detail"]["code"] == "STORAGE_ERROR"


class TestServerInfo:
    def test_retention_policy(self, client: TestClient) -> None:
        settings = get_settings()

        response = client.get("/config/retention_policy")

        assert response.status_code == 200
        assert response.json() == {
            "retentionSeconds": settings.retention_seconds,
            "storageType": settings.storage_type,
            "autoCleanup": settings.retention_seconds > 0
            and settings.cleanup_interval_seconds > 0,
        }

    def test_server_year(self, client: TestClient) -> None:
        response = client.get("/config/server_year")

        assert response.json() == {"year": datetime.now(UTC).year}

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "ok"}
