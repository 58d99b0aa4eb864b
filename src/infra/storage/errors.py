"""스토리지 계층 예외

InvalidPathError / SizeExceededError / ObjectNotFoundError / ForbiddenRootError 는
호출자 입력 오류(4xx), BackendIOError 는 디스크/네트워크 장애(5xx)로 구분한다.
"""


class StorageError(Exception):
    pass


class InvalidPathError(StorageError):
    pass


class EmptyPathError(InvalidPathError):
    pass


class PathTooLongError(InvalidPathError):
    pass


class PathTraversalError(InvalidPathError):
    pass


class AbsolutePathError(InvalidPathError):
    pass


class SizeExceededError(StorageError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"업로드 크기 초과 (최대 {limit} bytes)")
        self.limit = limit


class ObjectNotFoundError(StorageError):
    def __init__(self, key: str) -> None:
        super().__init__(f"파일을 찾을 수 없음: {key}")
        self.key = key


class ForbiddenRootError(StorageError):
    pass


class BackendIOError(StorageError):
    pass
