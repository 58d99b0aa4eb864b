from pathlib import Path

import pytest

from src.constants import Handle
from src.infra.storage.errors import (
    AbsolutePathError,
    EmptyPathError,
    InvalidPathError,
    PathTooLongError,
    PathTraversalError,
)
from src.infra.storage.paths import PathResolver, generate_handle, sanitize_user_path


class TestGenerateHandle:
    def test_length_and_alphabet(self) -> None:
        for _ in range(200):
            handle = generate_handle()
            assert len(handle) == 12
            assert Handle.PATTERN.match(handle)

    def test_handles_differ(self) -> None:
        assert len({generate_handle() for _ in range(50)}) == 50


class TestSanitizeUserPath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("report.pdf", "report.pdf"),
            ("  docs/report.pdf  ", "docs/report.pdf"),
            ("docs/./report.pdf", "docs/report.pdf"),
            ("docs//report.pdf", "docs/report.pdf"),
            ("docs/", "docs"),
            ("보고서.txt", "보고서.txt"),
            ("docs / ", "docs"),
            ("docs/\\ /", "docs"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert sanitize_user_path(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "/", "//"])
    def test_empty(self, raw: str) -> None:
        with pytest.raises(EmptyPathError):
            sanitize_user_path(raw)

    def test_too_long(self) -> None:
        with pytest.raises(PathTooLongError):
            sanitize_user_path("a" * 256)

    def test_max_length_allowed(self) -> None:
        assert sanitize_user_path("a" * 255) == "a" * 255

    def test_trailing_slash_not_counted_in_length(self) -> None:
        assert sanitize_user_path("a" * 255 + "/") == "a" * 255

    @pytest.mark.parametrize("raw", ["..", "../etc/passwd", "a/../../b", "a\\..\\b", "a/.."])
    def test_traversal(self, raw: str) -> None:
        with pytest.raises(PathTraversalError):
            sanitize_user_path(raw)

    @pytest.mark.parametrize("raw", ["/etc/passwd", "\\windows", "C:\\temp\\x", "C:/temp/x"])
    def test_absolute(self, raw: str) -> None:
        with pytest.raises(AbsolutePathError):
            sanitize_user_path(raw)

    def test_dotdot_inside_name_is_allowed(self) -> None:
        assert sanitize_user_path("archive..tar") == "archive..tar"


class TestPathResolver:
    def test_resolve(self, resolver: PathResolver, temp_storage_dir: Path) -> None:
        key = resolver.resolve("abcdefghijkl", "docs/report.pdf")

        assert key.path == temp_storage_dir / "abcdefghijkl" / "docs" / "report.pdf"
        assert key.object_key == "abcdefghijkl/docs/report.pdf"
        assert key.relative_path == "docs/report.pdf"
        assert key.filename == "report.pdf"
        assert not key.is_root

    def test_resolve_does_not_touch_filesystem(
        self, resolver: PathResolver, temp_storage_dir: Path
    ) -> None:
        resolver.resolve("abcdefghijkl", "a/b/c.txt")

        assert list(temp_storage_dir.iterdir()) == []

    def test_resolve_rejects_dot(self, resolver: PathResolver) -> None:
        with pytest.raises(EmptyPathError):
            resolver.resolve("abcdefghijkl", "./")

    def test_resolve_rejects_handle_escape(self, resolver: PathResolver) -> None:
        with pytest.raises(InvalidPathError):
            resolver.resolve("..", "x.txt")

    def test_resolve_handle(self, resolver: PathResolver) -> None:
        key = resolver.resolve_handle("abcdefghijkl")

        assert key.object_key == "abcdefghijkl"
        assert not key.is_root

    def test_resolve_handle_empty_is_root(self, resolver: PathResolver) -> None:
        key = resolver.resolve_handle("")

        assert key.is_root

    def test_resolve_handle_escape(self, resolver: PathResolver) -> None:
        with pytest.raises(PathTraversalError):
            resolver.resolve_handle("..")
