from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Tuple, Union

from ..core.file_handler import FileHandler, matches_any
from ..core.logging_utils import LoggerLike, ensure_structured_logger


class GlobTestLocator:
    """Finds test files below the project path with include/exclude globs."""

    def __init__(
        self,
        file_handler: FileHandler,
        test_files: Iterable[str],
        exclude_files: Iterable[str] = (),
        logger: LoggerLike = None,
    ) -> None:
        self.file_handler = file_handler
        self.test_files: Tuple[str, ...] = tuple(test_files)
        self.exclude_files: Tuple[str, ...] = tuple(exclude_files)
        self.logger = ensure_structured_logger(logger, fallback_name="GlobTestLocator")
        self._files: List[Path] = []

    async def find_test_files(self) -> List[Path]:
        return await self.file_handler.glob(self.test_files, self.exclude_files)

    async def refresh(self) -> List[Path]:
        self._files = await self.find_test_files()
        self.logger.info("Located %d test files", len(self._files))
        return list(self._files)

    def get_test_files(self) -> List[Path]:
        return list(self._files)

    def is_test_file(self, path: Union[str, Path]) -> bool:
        relative = self.file_handler.relative(path)
        return matches_any(relative, self.test_files) and not matches_any(relative, self.exclude_files)

    def dispose(self) -> None:
        self._files = []
