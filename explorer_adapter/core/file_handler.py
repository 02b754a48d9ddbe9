"""Filesystem access scoped to a project working directory."""

from __future__ import annotations

import asyncio
import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union, runtime_checkable

import aiofiles

from .logging_utils import LoggerLike, ensure_structured_logger

PathLike = Union[str, Path]


@runtime_checkable
class FileHandler(Protocol):
    cwd: Path

    def resolve(self, path: PathLike) -> Path:
        ...

    def relative(self, path: PathLike) -> str:
        ...

    def exists(self, path: PathLike) -> bool:
        ...

    async def read_file(self, path: PathLike, encoding: str = "utf-8") -> str:
        ...

    async def glob(self, include: Iterable[str], exclude: Iterable[str] = ()) -> List[Path]:
        ...


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    """Match a POSIX relative path against globs; a leading ``**/`` may match nothing."""
    for pattern in patterns:
        if fnmatch.fnmatchcase(relative_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatchcase(relative_path, pattern[3:]):
            return True
    return False


class SimpleFileHandler:

    def __init__(self, logger: LoggerLike = None, *, cwd: Optional[PathLike] = None) -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="SimpleFileHandler")
        self.cwd = Path(cwd).resolve() if cwd else Path.cwd()

    def resolve(self, path: PathLike) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.cwd / candidate

    def relative(self, path: PathLike) -> str:
        resolved = self.resolve(path)
        try:
            return resolved.relative_to(self.cwd).as_posix()
        except ValueError:
            return resolved.as_posix()

    def exists(self, path: PathLike) -> bool:
        return self.resolve(path).exists()

    async def read_file(self, path: PathLike, encoding: str = "utf-8") -> str:
        resolved = self.resolve(path)
        self.logger.debug("Reading file %s", resolved)
        async with aiofiles.open(resolved, "r", encoding=encoding) as fh:
            return await fh.read()

    async def glob(self, include: Iterable[str], exclude: Iterable[str] = ()) -> List[Path]:
        return await asyncio.to_thread(self.glob_sync, list(include), list(exclude))

    def glob_sync(self, include: Iterable[str], exclude: Iterable[str] = ()) -> List[Path]:
        exclude = list(exclude)
        found: dict[Path, None] = {}
        for pattern in include:
            for path in self.cwd.glob(pattern):
                if not path.is_file():
                    continue
                if exclude and matches_any(self.relative(path), exclude):
                    continue
                found.setdefault(path, None)
        self.logger.debug("Glob %s matched %d files", list(include), len(found))
        return sorted(found)


__all__ = ["FileHandler", "SimpleFileHandler", "matches_any"]
