import logging
import os
import posixpath
import shutil
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from src.constants import Limits, Permissions
from src.infra.storage.base import StoredObject
from src.infra.storage.errors import (
    BackendIOError,
    ForbiddenRootError,
    ObjectNotFoundError,
)
from src.infra.storage.paths import StorageKey

logger = logging.getLogger(__name__)


def _raise_walk_error(error: OSError) -> None:
    raise BackendIOError(f"디렉터리 조회 실패: {error.filename}") from error


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, UTC)


class LocalDiskStorage:
    """로컬 파일 시스템 저장소 구현체. `<root>/<handle>/<path>` 구조로 저장."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(os.path.abspath(base_dir))

    def ensure_root(self) -> None:
        self.base_dir.mkdir(mode=Permissions.DIR, parents=True, exist_ok=True)

    def save(self, key: StorageKey, stream: BinaryIO) -> int:
        """
        실패 시 (스트림에서 발생한 SizeExceededError 포함) 기록 중이던 파일을 지운 뒤 예외 전파.

        Raises:
            BackendIOError: 디렉터리 생성/파일 쓰기 실패 시
        """
        try:
            self._make_parents(key.path)
            fd = os.open(key.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, Permissions.FILE)
        except OSError as e:
            raise BackendIOError(f"파일 열기 실패: {key.object_key}") from e

        try:
            with os.fdopen(fd, "wb") as dst:
                written = 0
                while chunk := stream.read(Limits.BUFFER_SIZE):
                    dst.write(chunk)
                    written += len(chunk)
        except OSError as e:
            self._remove_partial(key.path)
            raise BackendIOError(f"파일 쓰기 실패: {key.object_key}") from e
        except Exception:
            self._remove_partial(key.path)
            raise

        return written

    def open(self, key: StorageKey) -> BinaryIO:
        try:
            return key.path.open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise ObjectNotFoundError(key.object_key) from e
        except OSError as e:
            raise BackendIOError(f"파일 읽기 실패: {key.object_key}") from e

    def delete(self, key: StorageKey) -> None:
        if key.is_root:
            raise ForbiddenRootError("storage root는 삭제할 수 없음")
        try:
            key.path.unlink()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise ObjectNotFoundError(key.object_key) from e
        except OSError as e:
            raise BackendIOError(f"파일 삭제 실패: {key.object_key}") from e

    def delete_prefix(self, key: StorageKey) -> int:
        if key.is_root:
            raise ForbiddenRootError("storage root는 삭제할 수 없음")

        if not key.path.is_dir():
            raise ObjectNotFoundError(key.object_key)

        count = sum(1 for _ in self.list_objects(f"{key.object_key}/"))
        try:
            shutil.rmtree(key.path)
        except OSError as e:
            raise BackendIOError(f"디렉터리 삭제 실패: {key.object_key}") from e
        return count

    def list_objects(self, prefix: str = "") -> Iterator[StoredObject]:
        """prefix로 시작하는 모든 파일 (S3 ListObjects와 같은 문자열 prefix 의미)"""
        top = self.base_dir / posixpath.dirname(prefix) if prefix else self.base_dir
        if not top.is_dir():
            return

        for dirpath, _, filenames in os.walk(top, onerror=_raise_walk_error):
            for name in filenames:
                path = Path(dirpath) / name
                object_key = path.relative_to(self.base_dir).as_posix()
                if not object_key.startswith(prefix):
                    continue
                try:
                    stat = path.stat()
                except FileNotFoundError:
                    continue  # 조회 도중 삭제됨
                yield StoredObject(
                    key=object_key,
                    size=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
                )

    def remove_expired(self, cutoff: datetime) -> int:
        """handle 디렉터리 단위 만료

        디렉터리 안에서 가장 최근에 수정된 파일 기준으로 판단한다.
        최근 파일이 하나라도 있으면 오래된 파일도 함께 유지.
        """
        try:
            entries = sorted(self.base_dir.iterdir())
        except OSError as e:
            raise BackendIOError(f"storage root 조회 실패: {self.base_dir}") from e

        removed = 0
        for target in entries:
            try:
                newest = self._newest_mtime(target)
            except (OSError, BackendIOError) as e:
                logger.warning(f"Local cleanup: 검사 실패 {target} - {e}")
                continue

            if newest > cutoff:
                continue

            try:
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                else:
                    target.unlink()
            except OSError as e:
                logger.error(f"Local cleanup: 삭제 실패 {target} - {e}")
                continue

            logger.info(f"Local cleanup: 만료 경로 삭제 {target}")
            removed += 1

        return removed

    def _newest_mtime(self, target: Path) -> datetime:
        if not target.is_dir() or target.is_symlink():
            return _mtime(target)

        objects = self.list_objects(f"{target.name}/")
        return max((obj.last_modified for obj in objects), default=_mtime(target))

    def _make_parents(self, path: Path) -> None:
        """root 아래 누락된 상위 디렉터리를 0750으로 생성"""
        self.ensure_root()
        missing: list[Path] = []
        parent = path.parent
        while parent != self.base_dir and not parent.exists():
            missing.append(parent)
            parent = parent.parent
        for directory in reversed(missing):
            directory.mkdir(mode=Permissions.DIR, exist_ok=True)

    def _remove_partial(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"부분 기록 파일 삭제 실패: {path} - {e}")
