"""Unit tests for SimpleFileHandler."""

import pytest

from explorer_adapter.core.file_handler import SimpleFileHandler, matches_any


class TestMatchesAny:
    """Test glob matching of relative paths."""

    @pytest.mark.parametrize("path,patterns,expected", [
        ("tests/test_a.py", ["**/test_*.py"], True),
        ("test_a.py", ["**/test_*.py"], True),
        ("src/a.py", ["**/test_*.py"], False),
        (".venv/lib/test_x.py", ["**/.venv/**"], True),
        ("tests/a_test.py", ["**/test_*.py", "**/*_test.py"], True),
    ])
    def test_patterns(self, path, patterns, expected):
        assert matches_any(path, patterns) is expected


class TestSimpleFileHandler:
    """Test project-scoped file access."""

    def test_resolve_and_relative(self, tmp_path):
        handler = SimpleFileHandler(cwd=tmp_path)

        assert handler.resolve("a/b.py") == tmp_path.resolve() / "a" / "b.py"
        assert handler.relative(tmp_path / "a" / "b.py") == "a/b.py"
        assert handler.relative("/elsewhere/c.py") == "/elsewhere/c.py"

    @pytest.mark.asyncio
    async def test_read_file(self, tmp_path):
        (tmp_path / "notes.txt").write_text("hello")
        handler = SimpleFileHandler(cwd=tmp_path)

        assert handler.exists("notes.txt")
        assert await handler.read_file("notes.txt") == "hello"

    @pytest.mark.asyncio
    async def test_glob_with_exclusions(self, sample_project):
        (sample_project / ".venv" / "lib").mkdir(parents=True)
        (sample_project / ".venv" / "lib" / "test_vendor.py").write_text("")
        handler = SimpleFileHandler(cwd=sample_project)

        found = await handler.glob(["**/test_*.py"], ["**/.venv/**"])

        assert [handler.relative(path) for path in found] == [
            "tests/test_passing.py",
            "tests/unit/test_failing.py",
        ]
