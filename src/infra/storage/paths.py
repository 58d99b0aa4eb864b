"""저장 경로 유도 및 검증

사용자가 지정한 상대 경로를 `<root>/<handle>/<path>` 형태의 StorageKey로 변환한다.
모든 키는 정규화 후 storage root 내부에 있어야 한다.
"""

import os
import posixpath
import re
import secrets
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

from src.constants import Handle, Limits
from src.infra.storage.errors import (
    AbsolutePathError,
    EmptyPathError,
    PathTooLongError,
    PathTraversalError,
)

_SLASHES = "/\\"
_TRAILING = _SLASHES + " \t"
_SEGMENT_SPLIT = re.compile(r"[/\\]")

WHOLE_HANDLE = "."


@dataclass(frozen=True)
class StorageKey:
    root: Path
    handle: str
    relative_path: str
    path: Path

    @property
    def object_key(self) -> str:
        """root 기준 상대 경로 (S3 object key, 구분자는 항상 '/')"""
        return self.path.relative_to(self.root).as_posix()

    @property
    def is_root(self) -> bool:
        return self.path == self.root

    @property
    def filename(self) -> str:
        return self.path.name


def generate_handle() -> str:
    return "".join(secrets.choice(Handle.ALPHABET) for _ in range(Handle.LENGTH))


def sanitize_user_path(raw: str) -> str:
    """사용자 경로 검증 + 정규화

    앞뒤 공백과 끝의 슬래시는 제거하지만, 선행 슬래시는 절대 경로로 보고 거부한다.

    Raises:
        EmptyPathError: 공백/슬래시 제거 후 빈 문자열
        PathTooLongError: 255자 초과
        PathTraversalError: '..' 세그먼트 포함
        AbsolutePathError: 절대 경로
    """
    cleaned = raw.strip()
    trimmed = cleaned.rstrip(_TRAILING)
    if not trimmed.strip(_TRAILING):
        raise EmptyPathError("파일 경로가 비어 있음")
    if len(trimmed) > Limits.MAX_PATH_LENGTH:
        raise PathTooLongError(
            f"파일 경로가 너무 김: {len(trimmed)}자 (최대 {Limits.MAX_PATH_LENGTH}자)"
        )
    if ".." in _SEGMENT_SPLIT.split(trimmed):
        raise PathTraversalError("경로에 '..' 세그먼트를 사용할 수 없음")
    if cleaned[0] in _SLASHES or os.path.isabs(cleaned) or PureWindowsPath(cleaned).drive:
        raise AbsolutePathError("파일 경로는 상대 경로여야 함")
    return posixpath.normpath(trimmed)


class PathResolver:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(os.path.abspath(root))

    def resolve(self, handle: str, user_path: str) -> StorageKey:
        """handle + 사용자 경로 → 파일 하나를 가리키는 StorageKey

        파일시스템은 건드리지 않는다. 디렉터리 생성은 LocalDiskStorage.save 담당.

        Raises:
            InvalidPathError: 경로 검증 실패 또는 root 밖으로 벗어나는 경우
        """
        relative = sanitize_user_path(user_path)
        if relative == WHOLE_HANDLE:
            raise EmptyPathError("파일 경로가 비어 있음")
        return self._build(handle, relative, allow_root=False)

    def resolve_handle(self, handle: str) -> StorageKey:
        """handle 디렉터리 전체 대상 키 (`<root>/<handle>`)

        root와 같아질 수 있으며 (handle이 "" 또는 "."), 삭제 거부는 백엔드가 판단.
        """
        return self._build(handle, WHOLE_HANDLE, allow_root=True)

    def _build(self, handle: str, relative: str, allow_root: bool) -> StorageKey:
        candidate = Path(os.path.abspath(os.path.join(self.root, handle, relative)))

        inside = candidate != self.root and candidate.is_relative_to(self.root)
        if allow_root and candidate == self.root:
            inside = True
        if not inside:
            raise PathTraversalError(f"storage root 밖의 경로: {handle}/{relative}")

        return StorageKey(root=self.root, handle=handle, relative_path=relative, path=candidate)
