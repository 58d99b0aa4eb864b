from io import BytesIO

import pytest

from src.infra.storage.errors import EmptyPathError, ObjectNotFoundError
from src.infra.storage.local import LocalDiskStorage
from src.infra.storage.paths import PathResolver
from src.services import files as files_service

HANDLE = "abcdefghijkl"


@pytest.fixture
def saved(use_local_storage: LocalDiskStorage, resolver: PathResolver) -> LocalDiskStorage:
    use_local_storage.save(resolver.resolve(HANDLE, "a.txt"), BytesIO(b"a" * 40_000))
    use_local_storage.save(resolver.resolve(HANDLE, "sub/b.txt"), BytesIO(b"b"))
    return use_local_storage


class TestOpenFile:
    def test_iter_stream(self, saved: LocalDiskStorage) -> None:
        key, stream = files_service.open_file(HANDLE, "a.txt")

        chunks = list(files_service.iter_stream(stream))

        assert key.filename == "a.txt"
        assert b"".join(chunks) == b"a" * 40_000
        assert len(chunks) == 3
        assert stream.closed

    def test_missing(self, saved: LocalDiskStorage) -> None:
        with pytest.raises(ObjectNotFoundError):
            files_service.open_file(HANDLE, "missing.txt")


class TestDelete:
    def test_delete_file(self, saved: LocalDiskStorage) -> None:
        assert files_service.delete_file(HANDLE, "sub/b.txt") == "sub/b.txt"

        with pytest.raises(ObjectNotFoundError):
            files_service.open_file(HANDLE, "sub/b.txt")

    def test_delete_file_empty_path(self, saved: LocalDiskStorage) -> None:
        with pytest.raises(EmptyPathError):
            files_service.delete_file(HANDLE, "")

    def test_delete_handle(self, saved: LocalDiskStorage) -> None:
        assert files_service.delete_handle(HANDLE) == 2

        with pytest.raises(ObjectNotFoundError):
            files_service.delete_handle(HANDLE)
