"""
Polling file watcher.

Every ``interval`` seconds the watcher asks the locator for the current
test files and compares their modification times with the previous pass.
Modified files retire the tests stored for them; added or removed files
ask the session to reload.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional

from ..core.asyncio_utils import create_logged_task, has_running_loop
from ..core.components import TestLocator, TestStore
from ..core.event_emitter import EventEmitter
from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..core.test_events import RetireEvent


def _mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


class PollingFileWatcher:

    def __init__(
        self,
        *,
        test_locator: TestLocator,
        test_store: TestStore,
        retire_emitter: EventEmitter[RetireEvent],
        reload_tests: Optional[Callable[[], Awaitable[None]]] = None,
        interval: float = 2.0,
        logger: LoggerLike = None,
    ) -> None:
        self.test_locator = test_locator
        self.test_store = test_store
        self.retire_emitter = retire_emitter
        self.reload_tests = reload_tests
        self.interval = interval
        self.logger = ensure_structured_logger(logger, fallback_name="PollingFileWatcher")
        self._mtimes: Optional[Dict[Path, Optional[float]]] = None
        self._task: Optional[asyncio.Task] = None
        self._disposed = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._disposed or self.is_running:
            return
        if self.interval <= 0:
            self.logger.debug("File watching disabled (interval %.1f)", self.interval)
            return
        if not has_running_loop():
            self.logger.warning("No running event loop; file watching not started")
            return
        self._task = create_logged_task(self._poll_loop(), logger=self.logger, context="file watcher")

    async def _poll_loop(self) -> None:
        while not self._disposed:
            try:
                await self.check_for_changes()
            except Exception as exc:
                self.logger.error("File watch pass failed: %s", exc, exc_info=True)
            await asyncio.sleep(self.interval)

    async def check_for_changes(self) -> List[str]:
        """Run one polling pass; returns the retired test ids."""
        files = await self.test_locator.find_test_files()
        current = {path: _mtime(path) for path in files}

        previous, self._mtimes = self._mtimes, current
        if previous is None:
            self.logger.debug("Watching %d test files", len(current))
            return []

        retired: List[str] = []
        for path, mtime in current.items():
            if path in previous and previous[path] != mtime:
                retired.extend(test.id for test in self.test_store.get_tests_by_file(path))

        added = current.keys() - previous.keys()
        removed = previous.keys() - current.keys()

        if retired and not self._disposed:
            self.logger.info("Retiring %d tests after file changes", len(retired))
            self.retire_emitter.fire(RetireEvent(tests=retired))

        if (added or removed) and not self._disposed:
            self.logger.info("Test files changed (%d added, %d removed)", len(added), len(removed))
            if self.reload_tests is not None:
                await self.reload_tests()

        return retired

    async def dispose(self) -> None:
        self._disposed = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._mtimes = None


__all__ = ["PollingFileWatcher"]
